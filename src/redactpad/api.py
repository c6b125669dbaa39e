"""FastAPI REST API for Redactpad sessions."""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .config import get_config
from .errors import (
    AssemblyError,
    RasterizationError,
    SessionError,
    SourceParseError,
    ValidationError,
)
from .interpreter import PointerInterpreter
from .models import Frame, PageRectangles, RedactionRect, SessionState, ViewMode
from .pdf import describe_document
from .pipeline import validate_rectangles
from .session import RedactionSession, new_rect_id

logger = logging.getLogger(__name__)

# Thread pool for CPU-bound rasterization work, shared by all sessions
_executor = ThreadPoolExecutor(max_workers=get_config().server.apply_workers)


app = FastAPI(
    title="Redactpad API",
    description="Draw redaction rectangles over PDF pages and burn them in",
    version="0.1.0",
)


class FrameModel(BaseModel):
    """On-screen bounding box of the page surface, in pixels."""

    left: float
    top: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PointerEventType(str, Enum):
    """Pointer event kinds understood by the interpreter."""

    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"


class PointerEvent(BaseModel):
    """A pointer event over one page, with the page's current screen box."""

    type: PointerEventType
    page_number: int = Field(ge=1)
    x: float = 0.0
    y: float = 0.0
    frame: FrameModel


class RectangleModel(BaseModel):
    """A redaction rectangle in normalized page coordinates."""

    id: Optional[str] = None
    page_number: int = Field(ge=1)
    x: float
    y: float
    width: float
    height: float


class PageModel(BaseModel):
    """Dimensions of one page in points."""

    page_number: int
    width: float
    height: float


class SessionResponse(BaseModel):
    """Read-only view of a session's state."""

    session_id: str
    is_redact_mode: bool
    rectangles: dict[int, list[RectangleModel]]
    current_drawing: Optional[RectangleModel] = None
    can_undo: bool
    current_view: ViewMode
    redactions_applied: bool
    is_processing: bool
    has_redacted_document: bool
    last_error: Optional[str] = None
    pages: list[PageModel] = []


class StaticSurface:
    """Page surface whose bounding box was reported by the client."""

    def __init__(self, frame: Frame):
        self._frame = frame

    def bounding_box(self) -> Frame:
        return self._frame


# In-memory session store
_sessions: dict[str, dict] = {}


def _rect_to_model(rect: RedactionRect) -> RectangleModel:
    return RectangleModel(
        id=rect.id,
        page_number=rect.page_number,
        x=rect.x,
        y=rect.y,
        width=rect.width,
        height=rect.height,
    )


def state_to_response(session_id: str, state: SessionState, pages: list[PageModel]) -> SessionResponse:
    """Convert internal SessionState to API response."""
    return SessionResponse(
        session_id=session_id,
        is_redact_mode=state.is_redact_mode,
        rectangles={
            page: [_rect_to_model(r) for r in rects]
            for page, rects in state.rectangles.items()
        },
        current_drawing=_rect_to_model(state.current_drawing) if state.current_drawing else None,
        can_undo=state.can_undo,
        current_view=state.current_view,
        redactions_applied=state.redactions_applied,
        is_processing=state.is_processing,
        has_redacted_document=state.redacted_document is not None,
        last_error=state.last_error,
        pages=pages,
    )


def _get_entry(session_id: str) -> dict:
    if session_id not in _sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    return _sessions[session_id]


def _get_editable(session_id: str) -> RedactionSession:
    """Session for an edit request; edits are refused while apply() runs."""
    session = _get_entry(session_id)["session"]
    if session.state.is_processing:
        raise HTTPException(status_code=409, detail="Redactions are being applied; try again when finished")
    return session


def _respond(session_id: str) -> SessionResponse:
    entry = _sessions[session_id]
    return state_to_response(session_id, entry["session"].state, entry["pages"])


@app.get("/health")
async def health_check():
    """Check API health."""
    return {"status": "ok", "sessions": len(_sessions)}


@app.post("/sessions", response_model=SessionResponse)
async def create_session(file: UploadFile = File(..., description="PDF file to redact")):
    """Start a redaction session for an uploaded PDF."""
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    content = await file.read()
    try:
        descriptor = describe_document(content)
    except SourceParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session_id = uuid.uuid4().hex
    _sessions[session_id] = {
        "session": RedactionSession(original_document=content, executor=_executor),
        "filename": file.filename,
        "pages": [
            PageModel(page_number=p.page_number, width=p.width, height=p.height)
            for p in descriptor.pages
        ],
    }
    logger.info("Session %s created for %s (%d pages)", session_id, file.filename, descriptor.page_count)
    return _respond(session_id)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    """Get the current state of a session."""
    _get_entry(session_id)
    return _respond(session_id)


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Discard a session and its documents."""
    entry = _get_entry(session_id)
    if entry["session"].state.is_processing:
        raise HTTPException(status_code=409, detail="Cannot delete a session that is still processing")
    del _sessions[session_id]
    return {"message": "Session deleted"}


@app.post("/sessions/{session_id}/mode", response_model=SessionResponse)
async def toggle_mode(session_id: str):
    """Switch between view and redact mode."""
    _get_entry(session_id)["session"].toggle_mode()
    return _respond(session_id)


@app.post("/sessions/{session_id}/view", response_model=SessionResponse)
async def toggle_view(session_id: str):
    """Switch between the original and redacted document."""
    _get_entry(session_id)["session"].toggle_view()
    return _respond(session_id)


@app.post("/sessions/{session_id}/pointer", response_model=SessionResponse)
async def pointer_event(session_id: str, event: PointerEvent):
    """Feed a pointer event over a page into the session."""
    entry = _get_entry(session_id)
    if event.page_number > len(entry["pages"]):
        raise HTTPException(status_code=422, detail=f"Page {event.page_number} does not exist")

    surface = StaticSurface(Frame(**event.frame.model_dump()))
    interpreter = PointerInterpreter(_get_editable(session_id), surface, event.page_number)

    if event.type == PointerEventType.DOWN:
        interpreter.pointer_down(event.x, event.y)
    elif event.type == PointerEventType.MOVE:
        interpreter.pointer_move(event.x, event.y)
    elif event.type == PointerEventType.UP:
        interpreter.pointer_up(event.x, event.y)
    else:
        interpreter.pointer_leave()

    return _respond(session_id)


@app.post("/sessions/{session_id}/rectangles", response_model=SessionResponse)
async def add_rectangles(session_id: str, rectangles: list[RectangleModel]):
    """
    Add previously saved rectangles to the session.

    The batch is all-or-nothing: one malformed rectangle rejects the
    request with 422 and nothing is added.
    """
    session = _get_editable(session_id)
    rects = [
        RedactionRect(
            id=r.id or new_rect_id(),
            x=r.x,
            y=r.y,
            width=r.width,
            height=r.height,
            page_number=r.page_number,
        )
        for r in rectangles
    ]
    try:
        validate_rectangles(PageRectangles.from_rects(rects))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    for rect in rects:
        session.add_rectangle(rect)
    return _respond(session_id)


@app.delete("/sessions/{session_id}/pages/{page_number}/rectangles/{rect_id}", response_model=SessionResponse)
async def remove_rectangle(session_id: str, page_number: int, rect_id: str):
    """Remove one rectangle from a page."""
    _get_editable(session_id).remove_rectangle(rect_id, page_number)
    return _respond(session_id)


@app.delete("/sessions/{session_id}/pages/{page_number}/rectangles", response_model=SessionResponse)
async def clear_page(session_id: str, page_number: int):
    """Remove all rectangles from a page."""
    _get_editable(session_id).clear_page(page_number)
    return _respond(session_id)


@app.post("/sessions/{session_id}/undo", response_model=SessionResponse)
async def undo(session_id: str):
    """Remove the most recently added rectangle."""
    _get_editable(session_id).undo()
    return _respond(session_id)


@app.post("/sessions/{session_id}/clear", response_model=SessionResponse)
async def clear_all(session_id: str):
    """Remove every rectangle."""
    _get_editable(session_id).clear_all()
    return _respond(session_id)


@app.post("/sessions/{session_id}/apply", response_model=SessionResponse)
async def apply(session_id: str):
    """
    Burn the rectangles into a new, flattened PDF.

    The session keeps its rectangles if this fails, so it can be retried.
    """
    session = _get_entry(session_id)["session"]
    try:
        await session.apply()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SourceParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (RasterizationError, AssemblyError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _respond(session_id)


@app.get("/sessions/{session_id}/document")
async def get_document(
    session_id: str,
    view: Optional[ViewMode] = Query(None, description="Defaults to the session's current view"),
):
    """Download the original or redacted PDF."""
    entry = _get_entry(session_id)
    state = entry["session"].state
    view = view or state.current_view

    data = state.redacted_document if view == ViewMode.REDACTED else state.original_document
    if data is None:
        raise HTTPException(status_code=404, detail=f"No {view.value} document available")

    filename = entry["filename"]
    if view == ViewMode.REDACTED:
        filename = filename[:-4] + "_redacted.pdf"
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/")
async def root():
    """API root - returns basic info."""
    return {
        "name": "Redactpad API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
        "sessions": "/sessions",
    }
