"""Apply redactions by rasterizing pages and painting over marked regions."""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional

import numpy as np

from .config import PipelineConfig, get_config
from .errors import ValidationError
from .geometry import clip_rect, rect_to_pixels
from .models import PageRectangles, RedactionRect
from .pdf import DocumentSource, PDFAssembler, PDFDocument, PageHandle

logger = logging.getLogger(__name__)


def validate_rectangles(rectangles: PageRectangles) -> None:
    """
    Check every rectangle before any destructive work begins.

    Raises:
        ValidationError: On the first rectangle with a non-positive size,
            a negative origin, or a page number that is not positive.
    """
    for page_number, rects in rectangles.items():
        if page_number < 1:
            raise ValidationError(page_number, None, "page numbers start at 1")
        for index, rect in enumerate(rects):
            if rect.page_number != page_number:
                raise ValidationError(
                    page_number, index,
                    f"rectangle belongs to page {rect.page_number}",
                )
            if not (rect.width > 0 and rect.height > 0):
                raise ValidationError(
                    page_number, index,
                    f"size must be positive, got {rect.width}x{rect.height}",
                )
            if not (rect.x >= 0 and rect.y >= 0):
                raise ValidationError(
                    page_number, index,
                    f"origin must be non-negative, got ({rect.x}, {rect.y})",
                )


def paint_rectangles(
    bitmap: np.ndarray,
    rects: tuple[RedactionRect, ...] | list[RedactionRect],
    color: tuple[int, int, int] = (0, 0, 0),
) -> int:
    """
    Fill normalized rectangles with a solid colour, in place.

    Rectangles reaching past the page edge are clipped to it first.

    Args:
        bitmap: RGB array of shape (height, width, 3)
        rects: Rectangles in normalized page coordinates
        color: RGB fill, 0-255

    Returns:
        Number of rectangles painted.
    """
    height, width = bitmap.shape[:2]
    painted = 0

    for rect in rects:
        clipped = clip_rect(rect)
        if clipped is None:
            continue
        x0, y0, x1, y1 = rect_to_pixels(clipped, width, height)
        if x1 <= x0 or y1 <= y0:
            continue
        bitmap[y0:y1, x0:x1] = color
        painted += 1

    return painted


def redact_page(
    page: PageHandle,
    rects: tuple[RedactionRect, ...],
    config: PipelineConfig,
) -> np.ndarray:
    """Rasterize one page and burn its rectangles into the pixels."""
    bitmap = page.render_to_bitmap(config.render_scale)
    if rects:
        painted = paint_rectangles(bitmap, rects, config.fill_color)
        logger.debug("Painted %d of %d rectangles", painted, len(rects))
    return bitmap


def redact_document(
    source: DocumentSource,
    rectangles: PageRectangles,
    config: PipelineConfig,
) -> bytes:
    """
    Rebuild a document page by page from redacted bitmaps.

    Every page is rasterized, including pages without rectangles, so the
    output carries no text or vector content from the source.
    """
    page_count = len(source)
    for page_number in rectangles:
        if page_number > page_count:
            raise ValidationError(
                page_number, None, f"document has only {page_count} pages"
            )

    with PDFAssembler(config.image_format, config.jpeg_quality) as assembler:
        for page_number in range(1, page_count + 1):
            page = source.page(page_number)
            width, height = page.get_viewport_dimensions()
            bitmap = redact_page(page, rectangles.get(page_number), config)
            assembler.add_bitmap_page(width, height, bitmap)
            logger.debug(
                "Page %d: %d rectangles, %dx%d px",
                page_number, len(rectangles.get(page_number)),
                bitmap.shape[1], bitmap.shape[0],
            )
        return assembler.to_bytes()


def apply_redactions(
    original: bytes,
    rectangles: PageRectangles,
    config: Optional[PipelineConfig] = None,
) -> bytes:
    """
    Produce a new PDF with every rectangle's region destroyed.

    Args:
        original: Source PDF bytes.
        rectangles: Normalized rectangles grouped by 1-based page number.
        config: Pipeline settings. Defaults to the global config.

    Returns:
        Bytes of the new PDF.

    Raises:
        ValidationError: A rectangle is malformed or names a missing page.
        SourceParseError: The source bytes are not a readable PDF.
        RasterizationError: A page could not be rendered.
        AssemblyError: The new PDF could not be built.
    """
    if config is None:
        config = get_config().pipeline

    validate_rectangles(rectangles)

    logger.info(
        "Applying %d redactions across %d pages",
        rectangles.total, len(rectangles),
    )

    with PDFDocument(original) as source:
        result = redact_document(source, rectangles, config)

    logger.info("Redacted document is %d bytes", len(result))
    return result


async def apply_redactions_async(
    original: bytes,
    rectangles: PageRectangles,
    config: Optional[PipelineConfig] = None,
    executor: Optional[Executor] = None,
) -> bytes:
    """Run apply_redactions on a worker thread without blocking the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        executor, apply_redactions, original, rectangles, config
    )
