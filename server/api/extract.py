"""
Extraction API endpoints
"""

import time

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field
from typing import Optional

from raster.compositor import DEFAULT_SOFTNESS, DEFAULT_TOLERANCE
from server.api.state import get_session
from services.extraction import ExtractionOptions

router = APIRouter()


class ExtractRequest(BaseModel):
    prompt: Optional[str] = None  # TEXT mode only
    use_ai_background_removal: bool = True
    keep_original_size: bool = True
    tolerance: float = Field(DEFAULT_TOLERANCE, ge=1, le=100)
    softness: float = Field(DEFAULT_SOFTNESS, ge=0, le=10)


class RekeyRequest(BaseModel):
    tolerance: Optional[float] = Field(None, ge=1, le=100)
    softness: Optional[float] = Field(None, ge=0, le=10)
    remove_white: Optional[bool] = None


@router.post("/{session_id}/extract")
async def extract(session_id: str, request: ExtractRequest):
    """
    Run an extraction for the session's current mode.

    Rejections (nothing selected, empty prompt, already running) are 400;
    collaborator failures are 502. The previous result is kept either way.
    A reset or switch to text mode while the call runs is 409.
    """
    session = get_session(session_id)
    options = ExtractionOptions(
        use_ai_background_removal=request.use_ai_background_removal,
        keep_original_size=request.keep_original_size,
        tolerance=request.tolerance,
        softness=request.softness,
    )

    result = await session.extract(request.prompt, options)
    if result is None and session.error is None:
        raise HTTPException(status_code=409, detail="Selection changed during extraction")
    if result is None:
        raise HTTPException(
            status_code=502 if session.error_retryable else 400,
            detail=session.error,
        )

    return {
        **session.to_dict(),
        "result": {
            "width": result.processed.shape[1],
            "height": result.processed.shape[0],
            "rect": list(result.rect) if result.rect else None,
        },
    }


@router.post("/{session_id}/rekey")
async def rekey(session_id: str, request: RekeyRequest):
    """Re-apply alpha keying with new settings, no collaborator calls."""
    session = get_session(session_id)
    session.rekey(request.tolerance, request.softness, request.remove_white)
    return session.to_dict()


@router.get("/{session_id}/result.png")
async def download_result(session_id: str, download: bool = True):
    """The processed extraction as PNG."""
    session = get_session(session_id)
    if session.result is None:
        raise HTTPException(status_code=404, detail="No extraction result")

    headers = {}
    if download:
        headers["Content-Disposition"] = f'attachment; filename="extracted-{int(time.time() * 1000)}.png"'
    return Response(content=session.result.png, media_type="image/png", headers=headers)
