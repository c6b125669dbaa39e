"""PDF loading, page rasterization and document assembly using PyMuPDF."""

import io
import logging
from pathlib import Path
from typing import Iterator, Protocol

import numpy as np
import pymupdf
from PIL import Image

from .errors import AssemblyError, RasterizationError, SourceParseError
from .models import DocumentDescriptor, Frame, PageInfo

logger = logging.getLogger(__name__)


class PageSurface(Protocol):
    """Rendered page surface as seen by the pointer interpreter."""

    def bounding_box(self) -> Frame:
        """Current on-screen box of the page, in pixels."""
        ...


class PageHandle(Protocol):
    """The two page capabilities the redaction pipeline needs."""

    def get_viewport_dimensions(self) -> tuple[float, float]:
        """Natural page size (width, height) in points."""
        ...

    def render_to_bitmap(self, scale: float) -> np.ndarray:
        """Render to an RGB array of shape (height, width, 3)."""
        ...


class DocumentSource(Protocol):
    """A parsed document that hands out page handles (1-based)."""

    def __len__(self) -> int:
        ...

    def page(self, page_number: int) -> PageHandle:
        ...


class PDFPage:
    """PageHandle backed by a PyMuPDF page."""

    def __init__(self, page: pymupdf.Page, page_number: int):
        self._page = page
        self.page_number = page_number

    def get_viewport_dimensions(self) -> tuple[float, float]:
        rect = self._page.rect
        return rect.width, rect.height

    def render_to_bitmap(self, scale: float) -> np.ndarray:
        """
        Render the page to a numpy array (RGB image).

        Args:
            scale: Pixels per PDF point (1.0 = 72 DPI)

        Returns:
            numpy array of shape (height, width, 3) with RGB values
        """
        try:
            mat = pymupdf.Matrix(scale, scale)
            pix = self._page.get_pixmap(matrix=mat, colorspace=pymupdf.csRGB, alpha=False)
        except Exception as exc:
            raise RasterizationError(self.page_number, str(exc)) from exc

        img = np.frombuffer(pix.samples, dtype=np.uint8).reshape(
            pix.height, pix.width, pix.n
        )
        return img.copy()  # Return a copy to avoid memory issues


class PDFDocument:
    """Handles PDF loading from bytes or a path, and page access."""

    def __init__(self, source: bytes | str | Path):
        """
        Open a PDF document.

        Args:
            source: Raw PDF bytes or a path to a PDF file

        Raises:
            SourceParseError: If the source is not a readable PDF
        """
        try:
            if isinstance(source, (bytes, bytearray)):
                if not source:
                    raise ValueError("document is empty")
                self._doc = pymupdf.open(stream=bytes(source), filetype="pdf")
            else:
                self._doc = pymupdf.open(str(source))
        except Exception as exc:
            raise SourceParseError(f"Cannot parse PDF: {exc}") from exc

        if not self._doc.is_pdf:
            self._doc.close()
            raise SourceParseError("Source is not a PDF document")
        if self._doc.needs_pass:
            self._doc.close()
            raise SourceParseError("PDF is encrypted")
        if len(self._doc) == 0:
            self._doc.close()
            raise SourceParseError("PDF has no pages")

        logger.debug("Opened PDF with %d pages", len(self._doc))

    def __len__(self) -> int:
        return len(self._doc)

    def __enter__(self) -> "PDFDocument":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the PDF document."""
        if not self._doc.is_closed:
            self._doc.close()

    def page(self, page_number: int) -> PDFPage:
        """
        Get a page handle.

        Args:
            page_number: Page number (1-based)

        Raises:
            IndexError: If the page number is out of range
            RasterizationError: If the page object cannot be loaded
        """
        if not 1 <= page_number <= len(self._doc):
            raise IndexError(f"Page {page_number} out of range 1..{len(self._doc)}")
        try:
            page = self._doc[page_number - 1]
        except Exception as exc:
            raise RasterizationError(page_number, f"cannot load page: {exc}") from exc
        return PDFPage(page, page_number)

    def pages(self) -> Iterator[PDFPage]:
        """Iterate over all pages in order."""
        for i in range(len(self)):
            yield self.page(i + 1)

    def describe(self) -> DocumentDescriptor:
        """Page count and per-page dimensions in points."""
        pages = []
        for page in self.pages():
            width, height = page.get_viewport_dimensions()
            pages.append(PageInfo(page_number=page.page_number, width=width, height=height))
        return DocumentDescriptor(pages=pages)


class PDFAssembler:
    """Builds a new PDF out of page-sized bitmaps."""

    def __init__(self, image_format: str = "png", jpeg_quality: int = 95):
        self.image_format = image_format
        self.jpeg_quality = jpeg_quality
        self._doc = pymupdf.open()

    def __len__(self) -> int:
        return len(self._doc)

    def __enter__(self) -> "PDFAssembler":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()

    def _encode(self, bitmap: np.ndarray) -> bytes:
        img = Image.fromarray(bitmap)
        buf = io.BytesIO()
        if self.image_format == "jpeg":
            img.save(buf, format="JPEG", quality=self.jpeg_quality)
        else:
            img.save(buf, format="PNG", optimize=True)
        return buf.getvalue()

    def add_bitmap_page(self, width: float, height: float, bitmap: np.ndarray) -> None:
        """
        Append a page of the given size holding only the bitmap.

        Args:
            width, height: Page size in points
            bitmap: RGB array of shape (height_px, width_px, 3)
        """
        try:
            stream = self._encode(bitmap)
            page = self._doc.new_page(width=width, height=height)
            page.insert_image(page.rect, stream=stream, keep_proportion=False)
        except Exception as exc:
            raise AssemblyError(f"Failed to add page {len(self._doc) + 1}: {exc}") from exc

    def to_bytes(self) -> bytes:
        """Serialize the assembled document."""
        if len(self._doc) == 0:
            raise AssemblyError("Cannot serialize a document with no pages")
        try:
            return self._doc.tobytes(garbage=4, deflate=True)
        except Exception as exc:
            raise AssemblyError(f"Failed to serialize PDF: {exc}") from exc


def load_pdf(source: bytes | str | Path) -> PDFDocument:
    """
    Load a PDF document.

    Args:
        source: Raw PDF bytes or a path to a PDF file

    Returns:
        PDFDocument instance
    """
    return PDFDocument(source)


def describe_document(source: bytes | str | Path) -> DocumentDescriptor:
    """Parse a PDF and report its page count and page sizes."""
    with load_pdf(source) as pdf:
        return pdf.describe()
