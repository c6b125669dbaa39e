"""Coordinate transforms between screen pixels, normalized pages and bitmaps."""

import math
from typing import Optional

from .models import Frame, Point, RedactionRect, ScreenRect


def _check_frame(frame: Frame) -> None:
    if frame.width <= 0 or frame.height <= 0:
        raise ValueError(
            f"Reference frame must have positive size, got {frame.width}x{frame.height}"
        )


def to_normalized(point: Point, frame: Frame) -> Point:
    """
    Convert a screen point to normalized page coordinates.

    Args:
        point: Position in screen pixels
        frame: Current on-screen bounding box of the page surface

    Returns:
        Point with x, y as fractions of the frame width and height.
        Points outside the frame map outside [0, 1]; no clamping is done.
    """
    _check_frame(frame)
    return Point(
        x=(point.x - frame.left) / frame.width,
        y=(point.y - frame.top) / frame.height,
    )


def to_screen(rect: RedactionRect, frame: Frame) -> ScreenRect:
    """
    Convert a normalized rectangle to screen pixels for overlay rendering.

    Inverse of to_normalized for any frame with positive size.
    """
    _check_frame(frame)
    return ScreenRect(
        left=frame.left + rect.x * frame.width,
        top=frame.top + rect.y * frame.height,
        width=rect.width * frame.width,
        height=rect.height * frame.height,
    )


def point_to_screen(point: Point, frame: Frame) -> Point:
    """Convert a normalized point back to screen pixels."""
    _check_frame(frame)
    return Point(
        x=frame.left + point.x * frame.width,
        y=frame.top + point.y * frame.height,
    )


def clamp_point(point: Point) -> Point:
    """Clamp a normalized point to the page, i.e. to [0, 1] on both axes."""
    return Point(x=min(max(point.x, 0.0), 1.0), y=min(max(point.y, 0.0), 1.0))


def span(anchor: Point, point: Point, page_number: int, rect_id: str) -> RedactionRect:
    """Axis-aligned rectangle spanning two normalized points."""
    return RedactionRect(
        id=rect_id,
        x=min(anchor.x, point.x),
        y=min(anchor.y, point.y),
        width=abs(point.x - anchor.x),
        height=abs(point.y - anchor.y),
        page_number=page_number,
    )


def clip_rect(rect: RedactionRect) -> Optional[RedactionRect]:
    """
    Intersect a rectangle with the unit page.

    Returns:
        The clipped rectangle, or None if nothing of it lies on the page.
    """
    x0 = max(rect.x, 0.0)
    y0 = max(rect.y, 0.0)
    x1 = min(rect.x1, 1.0)
    y1 = min(rect.y1, 1.0)

    if x1 <= x0 or y1 <= y0:
        return None

    return RedactionRect(
        id=rect.id,
        x=x0,
        y=y0,
        width=x1 - x0,
        height=y1 - y0,
        page_number=rect.page_number,
    )


def rect_to_pixels(
    rect: RedactionRect, img_width: int, img_height: int
) -> tuple[int, int, int, int]:
    """
    Convert a normalized rectangle to a pixel box in a bitmap.

    Near edges are floored and far edges ceiled, so every pixel the
    rectangle touches is covered. The box is clipped to the bitmap.

    Args:
        rect: Rectangle in normalized page coordinates
        img_width, img_height: Bitmap dimensions in pixels

    Returns:
        (x0, y0, x1, y1) in pixels, end-exclusive
    """
    x0 = math.floor(rect.x * img_width)
    y0 = math.floor(rect.y * img_height)
    x1 = math.ceil(rect.x1 * img_width)
    y1 = math.ceil(rect.y1 * img_height)

    x0 = min(max(x0, 0), img_width)
    y0 = min(max(y0, 0), img_height)
    x1 = min(max(x1, 0), img_width)
    y1 = min(max(y1, 0), img_height)

    return x0, y0, x1, y1
