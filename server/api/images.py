"""
Images API endpoints - produce a source image and open an editor session on it
"""

import logging
import binascii

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from raster.codec import b64decode_image
from server.api.state import get_backend, get_registry
from server.config import MAX_UPLOAD_BYTES
from services.base import CollaboratorError

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateRequest(BaseModel):
    prompt: str


class UploadRequest(BaseModel):
    image_base64: str
    prompt: Optional[str] = None


def open_session(image: bytes, prompt: str) -> dict:
    """Register a session for encoded image bytes, 400 if they don't decode."""
    try:
        session = get_registry().create(image, get_backend(), prompt=prompt)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.to_dict()


@router.post("/generate")
async def generate_image(request: GenerateRequest):
    """Generate an image from a prompt and open a session on it."""
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        image = await get_backend().generate(prompt)
    except CollaboratorError as e:
        logger.error(f"Generation failed for {prompt!r}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return open_session(image, prompt)


@router.post("/upload")
async def upload_image(request: UploadRequest):
    """Open a session on an uploaded image (base64, data URLs accepted)."""
    try:
        image = b64decode_image(request.image_base64)
    except binascii.Error as e:
        raise HTTPException(status_code=400, detail=f"Invalid base64 data: {e}")

    if not image:
        raise HTTPException(status_code=400, detail="Empty upload")
    if len(image) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"Upload is {len(image)} bytes, limit is {MAX_UPLOAD_BYTES}",
        )

    return open_session(image, request.prompt or "Uploaded Image")
