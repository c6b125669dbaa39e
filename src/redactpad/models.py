"""Data models for Redactpad."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


@dataclass(frozen=True)
class Point:
    """A position, either in screen pixels or normalized page fractions."""

    x: float
    y: float


@dataclass(frozen=True)
class Frame:
    """On-screen bounding box of a rendered page surface (pixels)."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class ScreenRect:
    """A rectangle in screen pixels, used for drawing overlays."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class RedactionRect:
    """
    A redaction mark on a single page.

    Coordinates are normalized page fractions with the origin at the page's
    top-left corner, so the mark does not depend on zoom or resolution.
    """

    id: str
    x: float  # Left edge
    y: float  # Top edge
    width: float
    height: float
    page_number: int  # 1-based

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains_point(self, x: float, y: float) -> bool:
        """Check if a normalized point is inside this rectangle."""
        return self.x <= x <= self.x1 and self.y <= y <= self.y1


class PageRectangles:
    """
    Immutable mapping of page number to the rectangles drawn on that page.

    Rectangles keep draw order. A page is only present while it holds at
    least one rectangle; every update returns a new instance.
    """

    __slots__ = ("_pages",)

    def __init__(self, pages: Optional[dict[int, tuple[RedactionRect, ...]]] = None):
        self._pages: dict[int, tuple[RedactionRect, ...]] = {
            page: tuple(rects) for page, rects in (pages or {}).items() if rects
        }

    @classmethod
    def from_rects(cls, rects: list[RedactionRect]) -> "PageRectangles":
        """Group rectangles by page, preserving their order."""
        pages: dict[int, list[RedactionRect]] = {}
        for rect in rects:
            pages.setdefault(rect.page_number, []).append(rect)
        return cls({page: tuple(items) for page, items in pages.items()})

    def __contains__(self, page_number: object) -> bool:
        return page_number in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[int]:
        return iter(self._pages)

    def __bool__(self) -> bool:
        return bool(self._pages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageRectangles):
            return NotImplemented
        return self._pages == other._pages

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._pages.items())))

    def __repr__(self) -> str:
        return f"PageRectangles({self._pages!r})"

    def get(self, page_number: int) -> tuple[RedactionRect, ...]:
        """Rectangles on a page, empty if the page has none."""
        return self._pages.get(page_number, ())

    def items(self) -> Iterator[tuple[int, tuple[RedactionRect, ...]]]:
        return iter(self._pages.items())

    @property
    def total(self) -> int:
        """Number of rectangles across all pages."""
        return sum(len(rects) for rects in self._pages.values())

    def all_rects(self) -> list[RedactionRect]:
        """Return all rectangles, flattened in page key order."""
        return [rect for rects in self._pages.values() for rect in rects]

    def add(self, rect: RedactionRect) -> "PageRectangles":
        pages = dict(self._pages)
        pages[rect.page_number] = pages.get(rect.page_number, ()) + (rect,)
        return PageRectangles(pages)

    def remove(self, rect_id: str, page_number: int) -> "PageRectangles":
        """Drop a rectangle by id; unknown ids leave the mapping unchanged."""
        current = self._pages.get(page_number)
        if current is None:
            return self
        remaining = tuple(r for r in current if r.id != rect_id)
        if len(remaining) == len(current):
            return self
        pages = dict(self._pages)
        if remaining:
            pages[page_number] = remaining
        else:
            del pages[page_number]
        return PageRectangles(pages)

    def without_page(self, page_number: int) -> "PageRectangles":
        if page_number not in self._pages:
            return self
        pages = dict(self._pages)
        del pages[page_number]
        return PageRectangles(pages)

    def pop_last(self) -> "PageRectangles":
        """
        Remove the most recent rectangle of the highest-numbered page.

        This is the undo order: pages are scanned from the highest number
        downward and the last rectangle of the first non-empty page goes.
        """
        if not self._pages:
            return self
        page_number = max(self._pages)
        pages = dict(self._pages)
        remaining = pages[page_number][:-1]
        if remaining:
            pages[page_number] = remaining
        else:
            del pages[page_number]
        return PageRectangles(pages)


class ViewMode(str, Enum):
    """Which document the presentation layer is showing."""

    ORIGINAL = "original"
    REDACTED = "redacted"


@dataclass(frozen=True)
class SessionState:
    """Complete state of one redaction session."""

    is_redact_mode: bool = False
    rectangles: PageRectangles = field(default_factory=PageRectangles)
    current_drawing: Optional[RedactionRect] = None
    drawing_anchor: Optional[Point] = None
    can_undo: bool = False
    current_view: ViewMode = ViewMode.ORIGINAL
    redacted_document: Optional[bytes] = None
    original_document: Optional[bytes] = None
    redactions_applied: bool = False
    is_processing: bool = False
    last_error: Optional[str] = None

    @property
    def is_drawing(self) -> bool:
        return self.current_drawing is not None


@dataclass
class PageInfo:
    """Dimensions of one page of a source document."""

    page_number: int  # 1-based
    width: float  # Page width in points
    height: float  # Page height in points

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0


@dataclass
class DocumentDescriptor:
    """Page count and per-page dimensions of a parsed document."""

    pages: list[PageInfo] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)
