"""Redactpad - draw rectangles over PDF pages and burn them in as redactions."""

__version__ = "0.1.0"

from .models import Frame, PageRectangles, Point, RedactionRect, SessionState, ViewMode
from .geometry import to_normalized, to_screen
from .session import RedactionSession, reduce
from .interpreter import PointerInterpreter
from .pipeline import apply_redactions, apply_redactions_async
from .pdf import load_pdf, describe_document

__all__ = [
    "Frame",
    "PageRectangles",
    "Point",
    "RedactionRect",
    "SessionState",
    "ViewMode",
    "to_normalized",
    "to_screen",
    "RedactionSession",
    "reduce",
    "PointerInterpreter",
    "apply_redactions",
    "apply_redactions_async",
    "load_pdf",
    "describe_document",
]
