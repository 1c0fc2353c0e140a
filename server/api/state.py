"""
Shared server state - the session registry and the collaborator backend
"""

from typing import Optional

from fastapi import HTTPException

from server.config import IMAGE_API_BASE_URL, IMAGE_API_KEY, IMAGE_MODEL, SAM_DEVICE, SAM_MODEL_ID
from services.backend import DefaultImageBackend
from services.base import ImageBackend
from services.segment import get_segment_service
from services.session import EditorSession, SessionRegistry

_registry = SessionRegistry()
_backend: Optional[ImageBackend] = None


def get_registry() -> SessionRegistry:
    return _registry


def get_backend() -> ImageBackend:
    """Get the collaborator backend, building the default one on first use."""
    global _backend

    if _backend is None:
        _backend = DefaultImageBackend(
            api_key=IMAGE_API_KEY,
            base_url=IMAGE_API_BASE_URL,
            model=IMAGE_MODEL,
            segment_service=get_segment_service(device=SAM_DEVICE, model_id=SAM_MODEL_ID),
        )
    return _backend


def set_backend(backend: Optional[ImageBackend]):
    """Replace the backend (tests, alternative deployments)."""
    global _backend
    _backend = backend


def get_session(session_id: str) -> EditorSession:
    """Look up a session or fail with 404."""
    session = _registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


async def close_backend():
    """Release the backend's clients and models, if one was built."""
    global _backend

    if _backend is not None:
        await _backend.close()
        _backend = None
