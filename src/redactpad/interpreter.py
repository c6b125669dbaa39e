"""Turn pointer events over a page surface into session commands."""

import logging
from typing import Optional

from .config import InterpreterConfig
from .geometry import clamp_point, to_normalized, to_screen
from .models import Point, ScreenRect
from .pdf import PageSurface
from .session import RedactionSession

logger = logging.getLogger(__name__)


class PointerInterpreter:
    """
    Bridge between raw pointer events on one page and a RedactionSession.

    The surface's bounding box moves with scrolling, zoom and resizing, so
    it is queried again on every event. Size thresholds and mode checks
    beyond "is a draw in progress" belong to the session.
    """

    def __init__(
        self,
        session: RedactionSession,
        surface: PageSurface,
        page_number: int,
        config: Optional[InterpreterConfig] = None,
    ):
        self.session = session
        self.surface = surface
        self.page_number = page_number
        self.config = config or session.config.interpreter

    def _normalize(self, x: float, y: float) -> Point:
        point = to_normalized(Point(x, y), self.surface.bounding_box())
        if self.config.clamp_to_page:
            point = clamp_point(point)
        return point

    def _drawing_here(self) -> bool:
        drawing = self.session.state.current_drawing
        return drawing is not None and drawing.page_number == self.page_number

    def pointer_down(self, x: float, y: float) -> None:
        """Start a rectangle at a screen position."""
        if not self.session.state.is_redact_mode:
            return
        self.session.begin_draw(self.page_number, self._normalize(x, y))

    def pointer_move(self, x: float, y: float) -> None:
        """Stretch the rectangle being drawn."""
        if not self._drawing_here():
            return
        self.session.update_draw(self._normalize(x, y))

    def pointer_up(self, x: float, y: float) -> None:
        """Finish the rectangle at the release position."""
        if not self._drawing_here():
            return
        self.session.update_draw(self._normalize(x, y))
        self.session.commit_draw()

    def pointer_leave(self) -> None:
        """Abandon the rectangle when the pointer leaves the surface."""
        if not self._drawing_here():
            return
        logger.debug("Pointer left page %d, drawing cancelled", self.page_number)
        self.session.cancel_draw()

    def overlays(self) -> tuple[list[ScreenRect], Optional[ScreenRect]]:
        """
        Screen rectangles to draw over this page.

        Returns:
            (committed rectangles, in-progress rectangle or None)
        """
        frame = self.surface.bounding_box()
        state = self.session.state
        committed = [to_screen(rect, frame) for rect in state.rectangles.get(self.page_number)]
        preview = to_screen(state.current_drawing, frame) if self._drawing_here() else None
        return committed, preview
