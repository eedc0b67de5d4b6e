from __future__ import annotations
from concurrent.futures import Future
from pathlib import PurePath
from typing import Optional, Tuple
import logging

from core.annotation_store import AnnotationStore
from core.capture import CaptureStateMachine, TextInputProvider
from core.error_types import (
    Result,
    Success,
    Failure,
    DocumentLoadError,
)
from core.pdf_engine import PageGeometryProvider, PDFDocument, PDFEngine
from core.viewport import Viewport
from models.annotation import Annotation
from models.settings import AppSettings
from services.composition_service import CancellationToken, CompositionService, FIRST_PAGE
from utils.validators import clamp_zoom_level, validate_zoom_level

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "document.pdf"


class AnnotationSession:
    """
    One annotating session over a single loaded document.

    Owns the original bytes, the annotation collection, the capture state
    machine and the current zoom. Every zoom change rebuilds the Viewport
    and hands it to the capture machine. Saving composes the collection
    into a new document without touching the original bytes.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        text_input: Optional[TextInputProvider] = None,
        pdf_engine: Optional[PDFEngine] = None,
        composition_service: Optional[CompositionService] = None,
    ):
        self._settings = settings or AppSettings()
        self._pdf_engine = pdf_engine or PDFEngine()
        self._composition_service = composition_service or CompositionService(
            annotation_settings=self._settings.annotation,
            options=self._settings.composition,
        )
        self._text_input = text_input

        self._original_bytes: Optional[bytes] = None
        self._file_name: str = ""
        self._page_size: Optional[Tuple[float, float]] = None
        self._pdf_document: Optional[PDFDocument] = None
        self._zoom = self._settings.viewer.default_zoom_level

        self._store = AnnotationStore()
        # One machine for the session lifetime; callers may hold on to it.
        self._capture = CaptureStateMachine(
            self._store,
            text_input=self._text_input,
            nominal_font_size=self._settings.annotation.nominal_font_size,
        )

    @property
    def capture(self) -> CaptureStateMachine:
        return self._capture

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def viewport(self) -> Optional[Viewport]:
        return self._capture.viewport

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def has_document(self) -> bool:
        return self._original_bytes is not None

    def open_bytes(self, data: bytes, file_name: str = DEFAULT_FILE_NAME) -> Result[None]:
        """
        Load a new document, discarding annotations and resetting zoom.

        Args:
            data: Original document bytes.
            file_name: Display name of the document.

        Returns:
            Result that is a Failure with DocumentLoadError if the bytes cannot be opened.
        """
        load_result = self._pdf_engine.load_bytes(data)
        if load_result.is_failure():
            load_result.get_error().log(logger)
            self._unload()
            return Failure(load_result.get_error())

        pdf_document = load_result.unwrap()
        size_result = self._read_page_size(pdf_document)
        if size_result.is_failure():
            pdf_document.close()
            size_result.get_error().log(logger)
            self._unload()
            return Failure(size_result.get_error())

        self._unload()
        self._pdf_document = pdf_document
        self._original_bytes = bytes(data)
        self._file_name = file_name
        self._page_size = size_result.unwrap()
        self._zoom = self._settings.viewer.default_zoom_level
        self._rebuild_viewport()

        logger.info(f"Opened {file_name} (page size {self._page_size[0]:.1f} x {self._page_size[1]:.1f})")
        return Success(None)

    def _read_page_size(self, geometry: PageGeometryProvider) -> Result[Tuple[float, float]]:
        return geometry.page_size(FIRST_PAGE)

    def _unload(self) -> None:
        if self._pdf_document is not None:
            self._pdf_document.close()
            self._pdf_document = None
        self._original_bytes = None
        self._file_name = ""
        self._page_size = None
        self._store = AnnotationStore()
        self._capture.set_store(self._store)
        self._capture.set_viewport(None)

    def set_text_input(self, text_input: Optional[TextInputProvider]) -> None:
        self._text_input = text_input
        self._capture.set_text_input(text_input)

    def set_zoom(self, zoom: float) -> Result[float]:
        """Set an explicit zoom level within the configured limits."""
        viewer = self._settings.viewer
        zoom_result = validate_zoom_level(zoom, viewer.min_zoom, viewer.max_zoom)
        if zoom_result.is_failure():
            return zoom_result

        self._zoom = zoom_result.unwrap()
        self._rebuild_viewport()
        return Success(self._zoom)

    def zoom_in(self) -> float:
        viewer = self._settings.viewer
        self._zoom = clamp_zoom_level(self._zoom * viewer.zoom_step, viewer.min_zoom, viewer.max_zoom)
        self._rebuild_viewport()
        return self._zoom

    def zoom_out(self) -> float:
        viewer = self._settings.viewer
        self._zoom = clamp_zoom_level(self._zoom / viewer.zoom_step, viewer.min_zoom, viewer.max_zoom)
        self._rebuild_viewport()
        return self._zoom

    def _rebuild_viewport(self) -> None:
        if self._page_size is None:
            self._capture.set_viewport(None)
            return

        width, height = self._page_size
        viewport_result = Viewport.create(self._zoom, width, height)
        viewport_result.on_failure(lambda error: error.log(logger))
        self._capture.set_viewport(viewport_result.unwrap_or(None))
        logger.debug(f"Viewport rebuilt at scale {self._zoom:.3f}")

    def annotations(self) -> Tuple[Annotation, ...]:
        return self._store.snapshot()

    def save(self, cancel_token: Optional[CancellationToken] = None) -> Result[bytes]:
        """Compose the current annotations into a new document."""
        if self._original_bytes is None:
            return Failure(DocumentLoadError(message="No document loaded"))

        return self._composition_service.compose(
            self._original_bytes,
            self._store.snapshot(),
            FIRST_PAGE,
            cancel_token=cancel_token,
        )

    def save_async(self, cancel_token: Optional[CancellationToken] = None) -> Future:
        """Compose on a worker thread; the future resolves to a Result[bytes]."""
        if self._original_bytes is None:
            future: Future = Future()
            future.set_result(Failure(DocumentLoadError(message="No document loaded")))
            return future

        return self._composition_service.compose_async(
            self._original_bytes,
            self._store.snapshot(),
            FIRST_PAGE,
            cancel_token=cancel_token,
        )

    def suggested_output_name(self) -> str:
        """Download name for the annotated copy: ``annotated_<original name>``."""
        name = PurePath(self._file_name).name if self._file_name else DEFAULT_FILE_NAME
        return f"annotated_{name}"

    def render_backdrop(self) -> Result[bytes]:
        """Rasterize the first page as PNG at the current zoom, for display under the overlay."""
        if self._pdf_document is None:
            return Failure(DocumentLoadError(message="No document loaded"))
        return self._pdf_document.render_page_to_png(FIRST_PAGE, self._zoom)

    def shutdown(self) -> None:
        self._unload()
        self._composition_service.shutdown()
