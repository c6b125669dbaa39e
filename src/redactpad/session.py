"""
Redaction session state machine.

All state changes go through reduce(state, command), a pure function that
returns a new SessionState. RedactionSession holds the only mutable
reference, dispatches commands to the reducer and runs the asynchronous
apply step against the redaction pipeline.
"""

import logging
import uuid
from concurrent.futures import Executor
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Optional, Union

from .config import RedactpadConfig, get_config
from .errors import AlreadyAppliedError, ApplyInProgressError, MissingDocumentError
from .geometry import span
from .models import PageRectangles, Point, RedactionRect, SessionState, ViewMode
from .pipeline import apply_redactions_async

logger = logging.getLogger(__name__)

DEFAULT_MIN_RECT_SIZE = 0.01


def new_rect_id() -> str:
    return f"rect-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ToggleMode:
    pass


@dataclass(frozen=True)
class BeginDraw:
    page_number: int
    point: Point


@dataclass(frozen=True)
class UpdateDraw:
    point: Point


@dataclass(frozen=True)
class CommitDraw:
    rect_id: str = field(default_factory=new_rect_id)


@dataclass(frozen=True)
class CancelDraw:
    pass


@dataclass(frozen=True)
class AddRectangle:
    rect: RedactionRect


@dataclass(frozen=True)
class RemoveRectangle:
    rect_id: str
    page_number: int


@dataclass(frozen=True)
class ClearPage:
    page_number: int


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class ToggleView:
    pass


@dataclass(frozen=True)
class LoadDocument:
    data: bytes


@dataclass(frozen=True)
class ApplyStarted:
    pass


@dataclass(frozen=True)
class ApplySucceeded:
    data: bytes


@dataclass(frozen=True)
class ApplyFailed:
    message: str


Command = Union[
    ToggleMode, BeginDraw, UpdateDraw, CommitDraw, CancelDraw, AddRectangle,
    RemoveRectangle, ClearPage, Undo, ClearAll, ToggleView, LoadDocument,
    ApplyStarted, ApplySucceeded, ApplyFailed,
]

# Commands that edit rectangles; ignored once redactions are applied.
EDIT_COMMANDS = (
    BeginDraw, UpdateDraw, CommitDraw, AddRectangle,
    RemoveRectangle, ClearPage, Undo, ClearAll,
)


def _with_rectangles(state: SessionState, rectangles: PageRectangles) -> SessionState:
    if rectangles is state.rectangles:
        return state
    return replace(state, rectangles=rectangles, can_undo=bool(rectangles))


def reduce(
    state: SessionState,
    command: Command,
    min_rect_size: float = DEFAULT_MIN_RECT_SIZE,
) -> SessionState:
    """
    Compute the state that follows a command.

    Args:
        state: Current session state (not modified).
        command: Command to apply.
        min_rect_size: Smallest width and height, as page fractions, a drawn
            rectangle must reach to be committed.

    Returns:
        The next state. Commands that do not apply in the current state
        return the same object.
    """
    if state.redactions_applied and isinstance(command, EDIT_COMMANDS):
        return state

    if isinstance(command, ToggleMode):
        return replace(
            state,
            is_redact_mode=not state.is_redact_mode,
            current_drawing=None,
            drawing_anchor=None,
        )

    if isinstance(command, BeginDraw):
        if not state.is_redact_mode:
            return state
        anchor = command.point
        return replace(
            state,
            current_drawing=span(anchor, anchor, command.page_number, "drawing"),
            drawing_anchor=anchor,
        )

    if isinstance(command, UpdateDraw):
        if state.current_drawing is None or state.drawing_anchor is None:
            return state
        return replace(
            state,
            current_drawing=span(
                state.drawing_anchor,
                command.point,
                state.current_drawing.page_number,
                state.current_drawing.id,
            ),
        )

    if isinstance(command, CommitDraw):
        drawing = state.current_drawing
        if drawing is None:
            return state
        state = replace(state, current_drawing=None, drawing_anchor=None)
        if drawing.width < min_rect_size or drawing.height < min_rect_size:
            return state
        rect = replace(drawing, id=command.rect_id)
        return replace(state, rectangles=state.rectangles.add(rect), can_undo=True)

    if isinstance(command, CancelDraw):
        if state.current_drawing is None:
            return state
        return replace(state, current_drawing=None, drawing_anchor=None)

    if isinstance(command, AddRectangle):
        # Same rules as validate_rectangles; callers with untrusted marks
        # validate first so malformed input fails instead of vanishing.
        rect = command.rect
        if not (rect.width > 0 and rect.height > 0 and rect.x >= 0 and rect.y >= 0):
            return state
        if rect.page_number < 1:
            return state
        return replace(state, rectangles=state.rectangles.add(rect), can_undo=True)

    if isinstance(command, RemoveRectangle):
        return _with_rectangles(
            state, state.rectangles.remove(command.rect_id, command.page_number)
        )

    if isinstance(command, ClearPage):
        return _with_rectangles(state, state.rectangles.without_page(command.page_number))

    if isinstance(command, Undo):
        return _with_rectangles(state, state.rectangles.pop_last())

    if isinstance(command, ClearAll):
        return replace(state, rectangles=PageRectangles(), can_undo=False)

    if isinstance(command, ToggleView):
        view = ViewMode.REDACTED if state.current_view == ViewMode.ORIGINAL else ViewMode.ORIGINAL
        return replace(state, current_view=view)

    if isinstance(command, LoadDocument):
        return SessionState(original_document=command.data)

    if isinstance(command, ApplyStarted):
        return replace(state, is_processing=True, last_error=None)

    if isinstance(command, ApplySucceeded):
        return replace(
            state,
            redacted_document=command.data,
            current_view=ViewMode.REDACTED,
            redactions_applied=True,
            can_undo=False,
            current_drawing=None,
            drawing_anchor=None,
            is_processing=False,
        )

    if isinstance(command, ApplyFailed):
        return replace(state, is_processing=False, last_error=command.message)

    raise TypeError(f"Unknown command: {command!r}")


Redactor = Callable[[bytes, PageRectangles], Awaitable[bytes]]
Listener = Callable[[SessionState], None]


class RedactionSession:
    """
    Owns one session's state and channels every change through reduce().

    The presentation layer reads `state` and calls the command methods;
    subscribers are notified with each new state.
    """

    def __init__(
        self,
        original_document: Optional[bytes] = None,
        config: Optional[RedactpadConfig] = None,
        redactor: Optional[Redactor] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Args:
            original_document: Source PDF bytes, if already known.
            config: Settings. Defaults to the global config.
            redactor: Coroutine function producing redacted bytes. Defaults
                to the PDF pipeline run on `executor`.
            executor: Thread pool for the default redactor (None = loop default).
        """
        self.config = config or get_config()
        self._executor = executor
        self._redactor = redactor or self._run_pipeline
        self._state = SessionState(original_document=original_document)
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, command: Command) -> SessionState:
        """Apply a command and notify listeners if the state changed."""
        new_state = reduce(self._state, command, self.config.session.min_rect_size)
        if new_state is self._state:
            return new_state

        logger.debug("%s -> %d rectangles", type(command).__name__, new_state.rectangles.total)
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    # --- Commands ---

    def toggle_mode(self) -> SessionState:
        return self.dispatch(ToggleMode())

    def begin_draw(self, page_number: int, point: Point) -> SessionState:
        return self.dispatch(BeginDraw(page_number, point))

    def update_draw(self, point: Point) -> SessionState:
        return self.dispatch(UpdateDraw(point))

    def commit_draw(self) -> SessionState:
        return self.dispatch(CommitDraw())

    def cancel_draw(self) -> SessionState:
        return self.dispatch(CancelDraw())

    def add_rectangle(self, rect: RedactionRect) -> SessionState:
        return self.dispatch(AddRectangle(rect))

    def add_rectangles(self, rectangles: PageRectangles) -> SessionState:
        for rect in rectangles.all_rects():
            self.dispatch(AddRectangle(rect))
        return self._state

    def remove_rectangle(self, rect_id: str, page_number: int) -> SessionState:
        return self.dispatch(RemoveRectangle(rect_id, page_number))

    def clear_page(self, page_number: int) -> SessionState:
        return self.dispatch(ClearPage(page_number))

    def undo(self) -> SessionState:
        return self.dispatch(Undo())

    def clear_all(self) -> SessionState:
        return self.dispatch(ClearAll())

    def toggle_view(self) -> SessionState:
        return self.dispatch(ToggleView())

    def load_document(self, data: bytes) -> SessionState:
        """Start over with a new source document."""
        if self._state.is_processing:
            raise ApplyInProgressError("Cannot load a document while redactions are being applied")
        return self.dispatch(LoadDocument(bytes(data)))

    async def _run_pipeline(self, original: bytes, rectangles: PageRectangles) -> bytes:
        return await apply_redactions_async(
            original, rectangles, self.config.pipeline, self._executor
        )

    async def apply(self) -> bytes:
        """
        Produce the redacted document from the current rectangles.

        On failure the exception propagates and only `is_processing` and
        `last_error` change, so the call can simply be repeated.

        Returns:
            Bytes of the redacted document.

        Raises:
            ApplyInProgressError: Another apply is still running.
            AlreadyAppliedError: Redactions were already applied.
            MissingDocumentError: No source document is loaded.
        """
        state = self._state
        if state.is_processing:
            raise ApplyInProgressError("Redactions are already being applied")
        if state.redactions_applied:
            raise AlreadyAppliedError("Redactions were already applied in this session")
        if state.original_document is None:
            raise MissingDocumentError("No document loaded")

        self.dispatch(ApplyStarted())
        try:
            result = await self._redactor(state.original_document, state.rectangles)
        except Exception as exc:
            logger.error("Applying redactions failed: %s", exc)
            self.dispatch(ApplyFailed(str(exc)))
            raise

        self.dispatch(ApplySucceeded(result))
        logger.info("Applied %d redactions", state.rectangles.total)
        return result
