"""
Server configuration
"""

import os
from pathlib import Path

# Base paths
ROOT_DIR = Path(__file__).parent.parent  # cutout/

# API settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# CORS origins (frontend URL)
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
).split(",")

# Largest accepted upload, in decoded bytes
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))

# SAM model settings
SAM_MODEL_ID = os.getenv("SAM_MODEL_ID", "facebook/sam-vit-base")
SAM_DEVICE = os.getenv("SAM_DEVICE", "cpu")

# Image generation / editing API (OpenAI-compatible)
IMAGE_API_KEY = os.getenv("IMAGE_API_KEY", "")
IMAGE_API_BASE_URL = os.getenv("IMAGE_API_BASE_URL") or None
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
