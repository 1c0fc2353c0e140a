"""
Sessions API endpoints - pointer, keyboard and viewport input for the editor
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Literal, Optional

from selection.models import EditMode, Point
from server.api.state import get_registry, get_session

router = APIRouter()


class PointerRequest(BaseModel):
    event: Literal["down", "move", "up"]
    x: float
    y: float
    button: int = 0
    shift: bool = False
    wait: bool = False  # on "up", return only after smart select resolves


class KeyRequest(BaseModel):
    key: str
    ctrl: bool = False
    shift: bool = False
    meta: bool = False


class ModeRequest(BaseModel):
    mode: EditMode


class ZoomRequest(BaseModel):
    delta: float
    anchor: Optional[list[float]] = None  # [x, y] screen


class WheelRequest(BaseModel):
    delta_y: float
    x: float
    y: float


class FitRequest(BaseModel):
    width: float
    height: float


@router.get("/{session_id}")
async def get_session_state(session_id: str):
    """Get the full editor state."""
    return get_session(session_id).to_dict()


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    """Close a session."""
    if not get_registry().delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"status": "deleted", "id": session_id}


@router.post("/{session_id}/pointer")
async def pointer_event(session_id: str, request: PointerRequest):
    """Feed a pointer event (screen coordinates) to the editor."""
    session = get_session(session_id)

    if request.event == "down":
        session.pointer_down(request.x, request.y, request.button, request.shift)
    elif request.event == "move":
        session.pointer_move(request.x, request.y)
    else:
        segmentation = session.pointer_up(request.x, request.y)
        if segmentation is not None and request.wait:
            await session.wait_for_segmentation()

    return session.to_dict()


@router.post("/{session_id}/key")
async def key_event(session_id: str, request: KeyRequest):
    """Keyboard shortcut (undo / redo)."""
    session = get_session(session_id)
    handled = session.handle_key(request.key, ctrl=request.ctrl, shift=request.shift, meta=request.meta)
    return {"handled": handled, **session.to_dict()}


@router.post("/{session_id}/mode")
async def set_mode(session_id: str, request: ModeRequest):
    session = get_session(session_id)
    session.set_mode(request.mode)
    return session.to_dict()


@router.post("/{session_id}/undo")
async def undo(session_id: str):
    session = get_session(session_id)
    session.editor.undo()
    return session.to_dict()


@router.post("/{session_id}/redo")
async def redo(session_id: str):
    session = get_session(session_id)
    session.editor.redo()
    return session.to_dict()


@router.post("/{session_id}/reset")
async def reset(session_id: str):
    """Clear the shape and the extraction result."""
    session = get_session(session_id)
    session.reset()
    return session.to_dict()


@router.post("/{session_id}/zoom")
async def zoom(session_id: str, request: ZoomRequest):
    """Zoom by a scale delta, anchored at a screen point or the view centre."""
    session = get_session(session_id)
    anchor = None
    if request.anchor is not None:
        if len(request.anchor) != 2:
            raise HTTPException(status_code=400, detail="anchor must be [x, y]")
        anchor = Point(*request.anchor)
    session.editor.zoom(request.delta, anchor)
    return session.to_dict()


@router.post("/{session_id}/wheel")
async def wheel(session_id: str, request: WheelRequest):
    """Mouse-wheel zoom about the cursor."""
    session = get_session(session_id)
    session.editor.wheel(request.delta_y, Point(request.x, request.y))
    return session.to_dict()


@router.post("/{session_id}/fit")
async def fit_to_view(session_id: str, request: FitRequest):
    """Fit the image into a visible area of the given size."""
    session = get_session(session_id)
    try:
        session.editor.fit_to_view((request.width, request.height))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.to_dict()


@router.get("/{session_id}/overlay.png")
async def get_overlay(session_id: str):
    """Selection overlay in image space (transparent PNG)."""
    session = get_session(session_id)
    return Response(content=session.overlay_png(), media_type="image/png")


@router.get("/{session_id}/source.png")
async def get_source(session_id: str):
    session = get_session(session_id)
    return Response(content=session.source_png, media_type="image/png")
