"""
Composition Service

Bakes annotations into the first page of a PDF as native page content:
- Text as BT/ET text objects in Helvetica
- Lines and circles as stroked paths
The input bytes are never touched; a new byte buffer is produced or nothing.
"""

from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
import logging
import threading
import time

import fitz
from PyQt6.QtCore import QObject, pyqtSignal

from core.error_types import (
    Result,
    Success,
    Failure,
    CompositionError,
    CompositionCancelledError,
    DocumentLoadError,
    FontEmbedError,
    capture_exception,
)
from models.annotation import Annotation, TextAnnotation
from models.settings import AnnotationSettings, CompositionOptions
from services.content_stream import ContentStreamBuilder, InvalidGeometry, encode_text
from utils.validators import validate_page_index, validate_pdf_bytes

logger = logging.getLogger(__name__)

FIRST_PAGE = 0

HELVETICA_BASE_FONT = "Helvetica"
WIN_ANSI_ENCODING = "WinAnsiEncoding"


class CancellationToken:
    """Thread-safe flag a caller sets to abandon a composition."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class CompositionProgress:
    """Progress information for a composition run."""

    total_annotations: int = 0
    processed_annotations: int = 0
    current_stage: str = ""
    is_cancelled: bool = False

    @property
    def progress_percent(self) -> float:
        if self.total_annotations == 0:
            return 0.0
        return (self.processed_annotations / self.total_annotations) * 100


@dataclass
class _OpenedPage:
    document: fitz.Document
    page: fitz.Page


class CompositionService(QObject):
    """
    Service for baking annotations into a PDF.

    Signals:
        composition_started: Emitted when a run begins
        composition_progress: Emitted with progress updates (CompositionProgress)
        composition_completed: Emitted with the output size in bytes
        composition_failed: Emitted with the error message
    """

    composition_started = pyqtSignal()
    composition_progress = pyqtSignal(object)  # CompositionProgress
    composition_completed = pyqtSignal(int)
    composition_failed = pyqtSignal(str)

    def __init__(
        self,
        annotation_settings: Optional[AnnotationSettings] = None,
        options: Optional[CompositionOptions] = None,
        max_workers: int = 1,
    ):
        super().__init__()

        self._annotation_settings = annotation_settings or AnnotationSettings()
        self._options = options or CompositionOptions()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._max_workers = max_workers
        self._executor_lock = threading.Lock()

    def compose(
        self,
        original_bytes: bytes,
        annotations: Sequence[Annotation],
        page_index: int = FIRST_PAGE,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[Callable[[CompositionProgress], None]] = None,
    ) -> Result[bytes]:
        """
        Produce a new PDF with the annotations drawn on the target page.

        Args:
            original_bytes: The source document. Not modified.
            annotations: Document-space annotations in paint order.
            page_index: Target page; only the first page is supported.
            cancel_token: Optional token checked between steps.
            progress_callback: Optional progress callback.

        Returns:
            Result containing the new document bytes, or the error that
            aborted the whole run.
        """
        start_time = time.time()
        annotations = tuple(annotations)
        self.composition_started.emit()

        result = self._compose(
            original_bytes,
            annotations,
            page_index,
            cancel_token,
            progress_callback,
        )

        if result.is_failure():
            error = result.get_error()
            error.log(logger)
            self.composition_failed.emit(error.message)
            return result

        output = result.unwrap()
        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Composed {len(annotations)} annotations into {len(output)} bytes in {elapsed_ms:.1f} ms"
        )
        self.composition_completed.emit(len(output))
        return result

    def compose_async(
        self,
        original_bytes: bytes,
        annotations: Sequence[Annotation],
        page_index: int = FIRST_PAGE,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[Callable[[CompositionProgress], None]] = None,
    ) -> Future:
        """
        Run compose() on a worker thread.

        The future resolves to the same Result compose() returns. Cancel a
        run through ``cancel_token``; the result is then a Failure.
        """
        snapshot = tuple(annotations)
        data = bytes(original_bytes) if isinstance(original_bytes, (bytearray, memoryview)) else original_bytes
        return self._get_executor().submit(
            self.compose,
            data,
            snapshot,
            page_index,
            cancel_token,
            progress_callback,
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker thread, if one was started."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="CompositionService",
                )
            return self._executor

    def _compose(
        self,
        original_bytes: bytes,
        annotations: Sequence[Annotation],
        page_index: int,
        cancel_token: Optional[CancellationToken],
        progress_callback: Optional[Callable[[CompositionProgress], None]],
    ) -> Result[bytes]:
        progress = CompositionProgress(
            total_annotations=len(annotations),
            current_stage="Opening document",
        )
        self._report(progress, progress_callback)

        bytes_result = validate_pdf_bytes(original_bytes)
        if bytes_result.is_failure():
            return Failure(DocumentLoadError(
                message=f"Cannot load document: {bytes_result.get_error().message}",
                byte_count=len(original_bytes) if isinstance(original_bytes, (bytes, bytearray)) else None,
            ))

        opened_result = self._open_page(bytes_result.unwrap(), page_index)
        if opened_result.is_failure():
            return opened_result

        opened = opened_result.unwrap()
        try:
            return self._draw_and_save(
                opened,
                annotations,
                page_index,
                cancel_token,
                progress,
                progress_callback,
            )
        except Exception as exception:
            return Failure(capture_exception(
                CompositionError,
                f"Composition failed: {exception}",
                page_number=page_index,
            ))
        finally:
            opened.document.close()

    def _open_page(self, data: bytes, page_index: int) -> Result[_OpenedPage]:
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as exception:
            return Failure(DocumentLoadError(
                message=f"Failed to open PDF: {exception}",
                byte_count=len(data),
            ))

        if document.needs_pass:
            document.close()
            return Failure(DocumentLoadError(
                message="PDF is encrypted and requires a password",
                byte_count=len(data),
            ))

        index_result = validate_page_index(page_index, document.page_count)
        if index_result.is_failure():
            document.close()
            error = index_result.get_error()
            if document.page_count < 1:
                return Failure(DocumentLoadError(message=error.message, byte_count=len(data)))
            return Failure(error)

        try:
            page = document[page_index]
        except Exception as exception:
            document.close()
            return Failure(DocumentLoadError(
                message=f"Failed to load page {page_index}: {exception}",
                byte_count=len(data),
            ))

        return Success(_OpenedPage(document=document, page=page))

    def _draw_and_save(
        self,
        opened: _OpenedPage,
        annotations: Sequence[Annotation],
        page_index: int,
        cancel_token: Optional[CancellationToken],
        progress: CompositionProgress,
        progress_callback: Optional[Callable[[CompositionProgress], None]],
    ) -> Result[bytes]:
        settings = self._annotation_settings
        font_name = settings.font_name

        if any(isinstance(annotation, TextAnnotation) for annotation in annotations):
            font_result = self._embed_font(opened, annotations)
            if font_result.is_failure():
                return font_result
            font_name = font_result.unwrap()

        builder = ContentStreamBuilder(
            stroke_rgb=settings.stroke_rgb,
            stroke_width=settings.stroke_width,
            font_name=font_name,
        )

        progress.current_stage = "Drawing annotations"
        for index, annotation in enumerate(annotations):
            if cancel_token is not None and cancel_token.is_cancelled:
                return self._cancelled(progress, progress_callback)

            try:
                builder.add(annotation)
            except InvalidGeometry as exception:
                return Failure(CompositionError(
                    message=f"Annotation cannot be drawn: {exception}",
                    page_number=page_index,
                    annotation_id=annotation.annotation_id,
                ))

            progress.processed_annotations = index + 1
            self._report(progress, progress_callback)

        if len(builder) > 0:
            self._append_content(opened, builder.build())

        if cancel_token is not None and cancel_token.is_cancelled:
            return self._cancelled(progress, progress_callback)

        progress.current_stage = "Saving document"
        self._report(progress, progress_callback)

        output = opened.document.tobytes(
            garbage=0,
            deflate=self._options.deflate,
            no_new_id=self._options.preserve_file_id,
        )
        return Success(output)

    def _embed_font(self, opened: _OpenedPage, annotations: Sequence[Annotation]) -> Result[str]:
        """
        Register the text font on the page and check every label can be encoded.

        Returns:
            Result containing the page resource name the text must use.
        """
        font_name = self._annotation_settings.font_name

        for annotation in annotations:
            if not isinstance(annotation, TextAnnotation):
                continue
            try:
                encode_text(annotation.text)
            except UnicodeEncodeError as exception:
                return Failure(FontEmbedError(
                    message=f"Font {font_name} cannot encode {exception.object[exception.start:exception.end]!r}",
                    font_name=font_name,
                    annotation_id=annotation.annotation_id,
                ))

        page = opened.page
        resource_name = self._resolve_font_resource(page, font_name)

        try:
            if resource_name == font_name:
                font_xref = page.insert_font(fontname=font_name)
            else:
                font_xref = self._add_font_resource(opened, resource_name)
        except Exception as exception:
            return Failure(capture_exception(
                FontEmbedError,
                f"Failed to embed font {font_name}: {exception}",
                font_name=font_name,
            ))

        if not font_xref:
            return Failure(FontEmbedError(
                message=f"Failed to embed font {font_name}",
                font_name=font_name,
            ))

        return Success(resource_name)

    def _resolve_font_resource(self, page: fitz.Page, font_name: str) -> str:
        """
        Pick the resource name for the text font.

        The configured name is reused only when the page leaves it free or
        already binds it to Helvetica in WinAnsiEncoding; otherwise the first
        free numbered variant is used.
        """
        # (xref, ext, type, basefont, name, encoding)
        bound = {entry[4]: entry for entry in page.get_fonts()}

        existing = bound.get(font_name)
        if existing is None:
            return font_name
        if existing[3] == HELVETICA_BASE_FONT and existing[5] == WIN_ANSI_ENCODING:
            return font_name

        suffix = 1
        while f"{font_name}{suffix}" in bound:
            suffix += 1
        resource_name = f"{font_name}{suffix}"
        logger.debug(f"Font resource /{font_name} is bound to {existing[3]}; using /{resource_name}")
        return resource_name

    def _add_font_resource(self, opened: _OpenedPage, resource_name: str) -> int:
        """Add a fresh Helvetica font object under ``resource_name`` in the page resources."""
        document = opened.document
        font_xref = document.get_new_xref()
        document.update_object(
            font_xref,
            f"<</Type/Font/Subtype/Type1/BaseFont/{HELVETICA_BASE_FONT}/Encoding/{WIN_ANSI_ENCODING}>>",
        )
        document.xref_set_key(opened.page.xref, f"Resources/Font/{resource_name}", f"{font_xref} 0 R")
        return font_xref

    def _append_content(self, opened: _OpenedPage, body: bytes) -> None:
        """
        Add the annotation stream on top of the existing page content.

        The existing content is bracketed by q ... Q so any graphics state
        it leaves behind does not leak into the annotations.
        """
        document = opened.document
        page = opened.page

        existing = list(page.get_contents())
        push_xref = self._new_stream(document, b"q\n")
        annotations_xref = self._new_stream(document, b"\nQ\n" + body)

        contents = [push_xref] + existing + [annotations_xref]
        references = " ".join(f"{xref} 0 R" for xref in contents)
        document.xref_set_key(page.xref, "Contents", f"[{references}]")

    def _new_stream(self, document: fitz.Document, data: bytes) -> int:
        xref = document.get_new_xref()
        document.update_object(xref, "<<>>")
        document.update_stream(xref, data, new=True, compress=self._options.deflate)
        return xref

    def _cancelled(
        self,
        progress: CompositionProgress,
        progress_callback: Optional[Callable[[CompositionProgress], None]],
    ) -> Result[bytes]:
        progress.is_cancelled = True
        progress.current_stage = "Cancelled"
        self._report(progress, progress_callback)
        return Failure(CompositionCancelledError(message="Composition cancelled"))

    def _report(
        self,
        progress: CompositionProgress,
        progress_callback: Optional[Callable[[CompositionProgress], None]],
    ) -> None:
        if progress_callback:
            progress_callback(progress)
        self.composition_progress.emit(progress)
