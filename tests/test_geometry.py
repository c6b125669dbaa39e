"""Tests for the normalized coordinate model."""

import pytest

from redactpad.geometry import (
    clamp_point,
    clip_rect,
    point_to_screen,
    rect_to_pixels,
    span,
    to_normalized,
    to_screen,
)
from redactpad.models import Frame, PageRectangles, Point, RedactionRect, ScreenRect


def make_rect(rect_id="r", page=1, x=0.1, y=0.1, width=0.2, height=0.2):
    return RedactionRect(id=rect_id, x=x, y=y, width=width, height=height, page_number=page)


class TestToNormalized:
    """Test screen to normalized conversion."""

    def test_frame_origin_maps_to_zero(self):
        frame = Frame(left=100, top=50, width=400, height=800)
        assert to_normalized(Point(100, 50), frame) == Point(0.0, 0.0)

    def test_frame_corner_maps_to_one(self):
        frame = Frame(left=100, top=50, width=400, height=800)
        assert to_normalized(Point(500, 850), frame) == Point(1.0, 1.0)

    def test_fractions_of_frame(self):
        frame = Frame(left=0, top=0, width=200, height=400)
        p = to_normalized(Point(50, 100), frame)
        assert p.x == pytest.approx(0.25)
        assert p.y == pytest.approx(0.25)

    def test_not_clamped(self):
        frame = Frame(left=10, top=10, width=100, height=100)
        p = to_normalized(Point(0, 220), frame)
        assert p.x == pytest.approx(-0.1)
        assert p.y == pytest.approx(2.1)

    def test_degenerate_frame_rejected(self):
        with pytest.raises(ValueError):
            to_normalized(Point(1, 1), Frame(left=0, top=0, width=0, height=100))


class TestToScreen:
    """Test normalized to screen conversion."""

    def test_rect_scaled_and_offset(self):
        frame = Frame(left=100, top=50, width=400, height=800)
        rect = make_rect(x=0.25, y=0.5, width=0.5, height=0.25)
        assert to_screen(rect, frame) == ScreenRect(left=200, top=450, width=200, height=200)

    @pytest.mark.parametrize("frame,point", [
        (Frame(0, 0, 612, 792), Point(123.4, 567.8)),
        (Frame(-35.5, 120.25, 1224, 1584), Point(0, 0)),
        (Frame(17, 3, 0.5, 0.25), Point(17.2, 3.1)),
        (Frame(300, 200, 900, 1165), Point(-40, 5000)),
    ])
    def test_inverse_of_to_normalized(self, frame, point):
        normalized = to_normalized(point, frame)

        back = point_to_screen(normalized, frame)
        assert back.x == pytest.approx(point.x)
        assert back.y == pytest.approx(point.y)

        as_rect = to_screen(span(normalized, normalized, 1, "p"), frame)
        assert as_rect.left == pytest.approx(point.x)
        assert as_rect.top == pytest.approx(point.y)

    def test_screen_rect_inverse(self):
        frame = Frame(left=40, top=60, width=300, height=500)
        rect = make_rect(x=0.1, y=0.3, width=0.4, height=0.2)
        screen = to_screen(rect, frame)

        top_left = to_normalized(Point(screen.left, screen.top), frame)
        bottom_right = to_normalized(
            Point(screen.left + screen.width, screen.top + screen.height), frame
        )
        assert top_left.x == pytest.approx(rect.x)
        assert top_left.y == pytest.approx(rect.y)
        assert bottom_right.x == pytest.approx(rect.x1)
        assert bottom_right.y == pytest.approx(rect.y1)


class TestSpanAndClip:
    """Test rectangle construction and clipping helpers."""

    def test_span_any_drag_direction(self):
        rect = span(Point(0.5, 0.5), Point(0.2, 0.3), 3, "r1")
        assert rect.x == pytest.approx(0.2)
        assert rect.y == pytest.approx(0.3)
        assert rect.width == pytest.approx(0.3)
        assert rect.height == pytest.approx(0.2)
        assert rect.page_number == 3
        assert rect.id == "r1"

    def test_span_zero_size(self):
        rect = span(Point(0.4, 0.4), Point(0.4, 0.4), 1, "r")
        assert rect.width == 0
        assert rect.height == 0

    def test_clamp_point(self):
        assert clamp_point(Point(-0.5, 1.5)) == Point(0.0, 1.0)
        assert clamp_point(Point(0.3, 0.7)) == Point(0.3, 0.7)

    def test_clip_inside_unchanged(self):
        rect = make_rect(x=0.25, y=0.25, width=0.5, height=0.5)
        assert clip_rect(rect) == rect

    def test_clip_past_edge(self):
        rect = make_rect(x=0.75, y=0.5, width=0.5, height=0.75)
        clipped = clip_rect(rect)
        assert clipped.x == 0.75
        assert clipped.width == pytest.approx(0.25)
        assert clipped.height == pytest.approx(0.5)

    def test_clip_outside_page(self):
        assert clip_rect(make_rect(x=1.5, y=0.1, width=0.2, height=0.2)) is None


class TestRectToPixels:
    """Test normalized to bitmap pixel conversion."""

    def test_exact_fractions(self):
        rect = make_rect(x=0.25, y=0.25, width=0.5, height=0.5)
        assert rect_to_pixels(rect, 200, 100) == (50, 25, 150, 75)

    def test_partial_pixels_fully_covered(self):
        # 0.101 * 100 = 10.1 -> 10, 0.309 * 100 = 30.9 -> 31
        rect = make_rect(x=0.101, y=0.101, width=0.208, height=0.208)
        assert rect_to_pixels(rect, 100, 100) == (10, 10, 31, 31)

    def test_clipped_to_bitmap(self):
        rect = make_rect(x=0.5, y=0.5, width=1.0, height=1.0)
        assert rect_to_pixels(rect, 100, 100) == (50, 50, 100, 100)


class TestPageRectangles:
    """Test the page-keyed rectangle collection."""

    def test_add_keeps_draw_order(self):
        a = make_rect("a", page=1)
        b = make_rect("b", page=1)
        rects = PageRectangles().add(a).add(b)
        assert rects.get(1) == (a, b)
        assert rects.total == 2

    def test_add_returns_new_instance(self):
        empty = PageRectangles()
        rects = empty.add(make_rect("a"))
        assert 1 not in empty
        assert 1 in rects

    def test_remove_last_drops_page_key(self):
        rects = PageRectangles().add(make_rect("a", page=2))
        rects = rects.remove("a", 2)
        assert 2 not in rects
        assert len(rects) == 0
        assert not rects

    def test_remove_unknown_is_same_object(self):
        rects = PageRectangles().add(make_rect("a", page=1))
        assert rects.remove("missing", 1) is rects
        assert rects.remove("a", 7) is rects

    def test_pop_last_scans_highest_page(self):
        a = make_rect("a", page=1)
        b = make_rect("b", page=3)
        c = make_rect("c", page=3)
        rects = PageRectangles().add(a).add(b).add(c)

        rects = rects.pop_last()
        assert rects.get(3) == (b,)
        rects = rects.pop_last()
        assert 3 not in rects
        assert rects.get(1) == (a,)

    def test_empty_pages_not_stored(self):
        rects = PageRectangles({1: (), 2: (make_rect("a", page=2),)})
        assert list(rects) == [2]

    def test_from_rects_groups_by_page(self):
        rects = PageRectangles.from_rects([
            make_rect("a", page=2), make_rect("b", page=1), make_rect("c", page=2),
        ])
        assert [r.id for r in rects.get(2)] == ["a", "c"]
        assert [r.id for r in rects.get(1)] == ["b"]

    def test_equality(self):
        a = make_rect("a")
        assert PageRectangles().add(a) == PageRectangles({1: (a,)})
