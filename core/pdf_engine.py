from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Tuple, Protocol, runtime_checkable
import hashlib
import logging
import threading

import fitz

from core.error_types import (
    Result,
    Success,
    Failure,
    DocumentLoadError,
    CompositionError,
    try_execute,
)
from utils.validators import validate_pdf_bytes

logger = logging.getLogger(__name__)


@runtime_checkable
class PageGeometryProvider(Protocol):
    """Anything that can report page dimensions in document units."""

    def page_size(self, page_number: int) -> Result[Tuple[float, float]]:
        ...


@dataclass(frozen=True)
class PageInfo:
    """Immutable container for PDF page information."""

    page_number: int
    width: float
    height: float
    rotation: int = 0
    media_box: Tuple[float, float, float, float] = (0, 0, 0, 0)


@dataclass
class PDFDocument:
    """Wrapper around an in-memory PyMuPDF document with resource management."""

    content_hash: str
    document: fitz.Document
    byte_count: int
    page_info_cache: Dict[int, PageInfo] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    def __enter__(self) -> PDFDocument:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying PDF document."""
        with self._lock:
            if self.document is not None and not self.document.is_closed:
                self.document.close()

    def is_open(self) -> bool:
        """Check if the document is still open."""
        return self.document is not None and not self.document.is_closed

    @property
    def page_count(self) -> int:
        """Get the total number of pages."""
        return len(self.document) if self.is_open() else 0

    def get_page_info(self, page_number: int) -> Result[PageInfo]:
        """
        Get information about a specific page.

        Args:
            page_number: Zero-based page index.

        Returns:
            Result containing PageInfo or error.
        """
        if not self.is_open():
            return Failure(DocumentLoadError(message="Document is closed"))

        if page_number < 0 or page_number >= self.page_count:
            return Failure(DocumentLoadError(
                message=f"Page number {page_number} out of range (0-{self.page_count - 1})",
            ))

        with self._lock:
            if page_number in self.page_info_cache:
                return Success(self.page_info_cache[page_number])

            try:
                page = self.document[page_number]
                rect = page.rect
                media_box = page.mediabox

                page_info = PageInfo(
                    page_number=page_number,
                    width=rect.width,
                    height=rect.height,
                    rotation=page.rotation,
                    media_box=(media_box.x0, media_box.y0, media_box.x1, media_box.y1),
                )

                self.page_info_cache[page_number] = page_info
                return Success(page_info)

            except Exception as exception:
                return Failure(DocumentLoadError(
                    message=f"Failed to get page info: {str(exception)}",
                ))

    def page_size(self, page_number: int) -> Result[Tuple[float, float]]:
        """Page width and height in document units."""
        return self.get_page_info(page_number).map(lambda info: (info.width, info.height))

    def render_page_to_pixmap(
        self,
        page_number: int,
        scale: float = 1.0,
    ) -> Result[fitz.Pixmap]:
        """
        Rasterize a page at the given scale.

        The pixmap is exactly page size times scale, matching the surface
        a Viewport at the same scale maps onto.
        """
        info_result = self.get_page_info(page_number)
        if info_result.is_failure():
            return info_result

        if not scale > 0:
            return Failure(CompositionError(
                message=f"Render scale must be positive, got {scale!r}",
                page_number=page_number,
            ))

        with self._lock:
            try:
                page = self.document[page_number]
                pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
                return Success(pixmap)
            except Exception as exception:
                return Failure(CompositionError(
                    message=f"Failed to render page: {str(exception)}",
                    page_number=page_number,
                ))

    def render_page_to_png(self, page_number: int, scale: float = 1.0) -> Result[bytes]:
        """Rasterize a page and encode it as PNG bytes."""
        return self.render_page_to_pixmap(page_number, scale).map(
            lambda pixmap: pixmap.tobytes("png")
        )


class PDFEngine:
    """Opens PDF byte buffers for page geometry and backdrop rendering."""

    def load_bytes(self, data: bytes) -> Result[PDFDocument]:
        """
        Open a PDF held in memory.

        Args:
            data: Raw document bytes. Not modified.

        Returns:
            Result containing PDFDocument or a DocumentLoadError.
        """
        bytes_result = validate_pdf_bytes(data)
        if bytes_result.is_failure():
            return Failure(DocumentLoadError(
                message=bytes_result.get_error().message,
            ))

        data = bytes_result.unwrap()

        open_result = try_execute(
            lambda: fitz.open(stream=data, filetype="pdf"),
            DocumentLoadError,
            "Failed to load PDF",
            byte_count=len(data),
        )
        if open_result.is_failure():
            return open_result

        fitz_document = open_result.unwrap()

        if fitz_document.needs_pass:
            fitz_document.close()
            return Failure(DocumentLoadError(
                message="PDF is encrypted and requires a password",
                byte_count=len(data),
            ))

        if len(fitz_document) == 0:
            fitz_document.close()
            return Failure(DocumentLoadError(
                message="PDF has no pages",
                byte_count=len(data),
            ))

        pdf_document = PDFDocument(
            content_hash=hashlib.sha256(data).hexdigest(),
            document=fitz_document,
            byte_count=len(data),
        )

        logger.info(f"Loaded document {pdf_document.content_hash[:12]} ({pdf_document.page_count} pages)")
        return Success(pdf_document)
