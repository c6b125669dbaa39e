"""Tests for reading and writing redaction marks."""

import json

import pytest

from redactpad.marks import load_rectangles, write_rectangles
from redactpad.models import PageRectangles, RedactionRect


class TestLoadRectangles:
    """Test loading marks files."""

    def test_load_json_list(self, tmp_path):
        path = tmp_path / "marks.json"
        path.write_text(json.dumps([
            {"id": "a", "page": 1, "x": 0.1, "y": 0.2, "width": 0.3, "height": 0.4},
            {"id": "b", "page": 2, "x": 0.5, "y": 0.5, "width": 0.1, "height": 0.1},
        ]))

        rects = load_rectangles(path)

        assert len(rects) == 2
        assert rects.get(1) == (RedactionRect("a", 0.1, 0.2, 0.3, 0.4, 1),)
        assert rects.get(2)[0].id == "b"

    def test_load_json_object(self, tmp_path):
        path = tmp_path / "marks.json"
        path.write_text(json.dumps({"rectangles": [
            {"page": 3, "x": 0.1, "y": 0.1, "width": 0.2, "height": 0.2},
        ]}))

        rects = load_rectangles(path)
        assert rects.get(3)[0].id == "rect-0"

    def test_load_csv(self, tmp_path):
        path = tmp_path / "marks.csv"
        path.write_text(
            "id,page,x,y,width,height\n"
            "a,1,0.1,0.1,0.2,0.2\n"
            "b,1,0.5,0.5,0.2,0.2\n"
            "c,4,0.0,0.0,1.0,0.5\n"
        )

        rects = load_rectangles(path)

        assert [r.id for r in rects.get(1)] == ["a", "b"]
        assert rects.get(4)[0].width == 1.0
        assert rects.total == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rectangles(tmp_path / "nope.json")


class TestWriteRectangles:
    """Test writing marks files."""

    @pytest.fixture
    def rectangles(self):
        return PageRectangles.from_rects([
            RedactionRect("a", 0.1, 0.1, 0.2, 0.2, 1),
            RedactionRect("b", 0.25, 0.5, 0.5, 0.25, 2),
        ])

    def test_csv_reloads(self, tmp_path, rectangles):
        path = tmp_path / "out.csv"
        write_rectangles(rectangles, path)
        assert path.read_text().splitlines()[0] == "id,page,x,y,width,height"
        assert load_rectangles(path) == rectangles

    def test_json_structure(self, tmp_path, rectangles):
        path = tmp_path / "out.json"
        write_rectangles(rectangles, path)

        data = json.loads(path.read_text())
        assert data["rectangles"][1] == {
            "id": "b", "page": 2, "x": 0.25, "y": 0.5, "width": 0.5, "height": 0.25,
        }

    def test_unknown_format(self, tmp_path, rectangles):
        with pytest.raises(ValueError):
            write_rectangles(rectangles, tmp_path / "out.txt", format="xml")
