"""Read and write redaction marks as CSV or JSON."""

import csv
import json
from pathlib import Path
from typing import TextIO

from .models import PageRectangles, RedactionRect

FIELDNAMES = ["id", "page", "x", "y", "width", "height"]


def rect_to_dict(rect: RedactionRect) -> dict:
    return {
        "id": rect.id,
        "page": rect.page_number,
        "x": rect.x,
        "y": rect.y,
        "width": rect.width,
        "height": rect.height,
    }


def rect_from_dict(row: dict, index: int = 0) -> RedactionRect:
    """
    Build a rectangle from a CSV row or JSON object.

    Rows without an id get a positional one.
    """
    return RedactionRect(
        id=str(row.get("id") or f"rect-{index}"),
        x=float(row.get("x", 0)),
        y=float(row.get("y", 0)),
        width=float(row.get("width", 0)),
        height=float(row.get("height", 0)),
        page_number=int(row.get("page", 1)),
    )


def load_rectangles(path: str | Path) -> PageRectangles:
    """
    Load redaction marks from a .json or .csv file.

    JSON is either a list of rectangle objects or {"rectangles": [...]}.
    CSV columns: id, page, x, y, width, height.

    Args:
        path: Path to the marks file.

    Returns:
        Rectangles grouped by page, in file order.
    """
    path = Path(path)

    if path.suffix.lower() == ".json":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("rectangles", [])
        rows = list(data)
    else:
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

    return PageRectangles.from_rects(
        [rect_from_dict(row, i) for i, row in enumerate(rows)]
    )


def write_csv(rectangles: PageRectangles, output: str | Path | TextIO) -> None:
    """Write marks in CSV format."""

    def write_to_file(f: TextIO) -> None:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for rect in rectangles.all_rects():
            writer.writerow(rect_to_dict(rect))

    if isinstance(output, (str, Path)):
        with open(output, "w", newline="", encoding="utf-8") as f:
            write_to_file(f)
    else:
        write_to_file(output)


def write_json(rectangles: PageRectangles, output: str | Path | TextIO, indent: int = 2) -> None:
    """
    Write marks in JSON format.

    JSON structure:
    {
        "rectangles": [
            {"id": "...", "page": 1, "x": 0.1, "y": 0.1, "width": 0.3, "height": 0.3}
        ]
    }
    """
    data = {"rectangles": [rect_to_dict(rect) for rect in rectangles.all_rects()]}

    if isinstance(output, (str, Path)):
        with open(output, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent)
    else:
        json.dump(data, output, indent=indent)


def write_rectangles(
    rectangles: PageRectangles,
    output: str | Path,
    format: str | None = None,
) -> None:
    """
    Write marks to a file.

    Args:
        rectangles: Marks to write
        output: Output file path
        format: "csv" or "json"; inferred from the suffix when None
    """
    if format is None:
        format = "json" if Path(output).suffix.lower() == ".json" else "csv"

    if format == "csv":
        write_csv(rectangles, output)
    elif format == "json":
        write_json(rectangles, output)
    else:
        raise ValueError(f"Unsupported format: {format}")
