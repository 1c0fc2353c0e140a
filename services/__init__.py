"""
Services module - external collaborators, smart select, extraction and sessions
"""

from services.base import CollaboratorError, SegmentationResult, ImageBackend
from services.segment import SegmentService, get_segment_service, clear_segment_service
from services.backend import DefaultImageBackend
from services.smart_select import smart_select
from services.extraction import ExtractionError, ExtractionOptions, ExtractionResult, ExtractionOrchestrator
from services.session import EditorSession, SessionRegistry

__all__ = [
    "CollaboratorError", "SegmentationResult", "ImageBackend",
    "SegmentService", "get_segment_service", "clear_segment_service",
    "DefaultImageBackend",
    "smart_select",
    "ExtractionError", "ExtractionOptions", "ExtractionResult", "ExtractionOrchestrator",
    "EditorSession", "SessionRegistry",
]
