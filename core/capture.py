"""
Pointer gesture capture.

Turns discrete pointer events from a rendering surface into annotation
records in document space. Only transient interaction state lives here;
committed annotations go straight to the AnnotationStore.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Tuple
import logging

from PyQt6.QtCore import QLineF, QPointF, QRectF

from core.annotation_store import AnnotationStore
from core.error_types import Result
from core.viewport import Viewport, to_document
from models.annotation import (
    AnnotationFactory,
    AnnotationKind,
    Point,
    Tool,
)
from utils.validators import validate_annotation_text

logger = logging.getLogger(__name__)

# Supplies text for a text-tool click; None or "" means the user cancelled.
TextInputProvider = Callable[[], Optional[str]]

DEFAULT_NOMINAL_FONT_SIZE = 12.0


class CaptureState(Enum):
    """Gesture states."""
    IDLE = auto()
    PANNING = auto()
    DRAWING = auto()


_DRAWING_TOOLS = {
    Tool.LINE: AnnotationKind.LINE,
    Tool.CIRCLE: AnnotationKind.CIRCLE,
}


@dataclass(frozen=True)
class PreviewShape:
    """Live, surface-space outline of the shape being dragged. Never stored."""

    kind: AnnotationKind
    start: Point
    end: Point

    @property
    def radius(self) -> float:
        return self.start.distance_to(self.end)

    def to_qline(self) -> QLineF:
        return QLineF(QPointF(self.start.x, self.start.y), QPointF(self.end.x, self.end.y))

    def bounding_qrect(self) -> QRectF:
        """Bounding box of the preview; for circles the start point is the centre."""
        if self.kind == AnnotationKind.CIRCLE:
            radius = self.radius
            return QRectF(self.start.x - radius, self.start.y - radius, 2 * radius, 2 * radius)
        return QRectF(QPointF(self.start.x, self.start.y), QPointF(self.end.x, self.end.y)).normalized()


class CaptureStateMachine:
    """
    Interprets pointer and tool events and commits annotations.

    States:
        IDLE: no gesture in progress.
        PANNING: a pan drag is in progress; ``pan_delta`` tracks the offset.
        DRAWING: a line or circle drag is in progress, anchored in document space.

    A missing or degenerate viewport aborts the gesture and returns to IDLE
    without creating anything.
    """

    def __init__(
        self,
        store: AnnotationStore,
        text_input: Optional[TextInputProvider] = None,
        viewport: Optional[Viewport] = None,
        nominal_font_size: float = DEFAULT_NOMINAL_FONT_SIZE,
    ):
        self._store = store
        self._text_input = text_input
        self._viewport = viewport
        self._nominal_font_size = nominal_font_size

        self._state = CaptureState.IDLE
        self._drawing_tool: Optional[Tool] = None
        self._anchor: Optional[Point] = None
        self._preview: Optional[PreviewShape] = None
        self._pan_origin: Optional[Point] = None
        self._pan_delta: Tuple[float, float] = (0.0, 0.0)

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def viewport(self) -> Optional[Viewport]:
        return self._viewport

    @property
    def drawing_tool(self) -> Optional[Tool]:
        return self._drawing_tool

    @property
    def anchor(self) -> Optional[Point]:
        """Document-space anchor of the drag in progress."""
        return self._anchor

    @property
    def preview(self) -> Optional[PreviewShape]:
        return self._preview

    @property
    def pan_delta(self) -> Tuple[float, float]:
        """Surface-space (dx, dy) of the current pan drag since the press."""
        return self._pan_delta

    def set_viewport(self, viewport: Optional[Viewport]) -> None:
        """Install the viewport for the current scale. Aborts any gesture in progress."""
        if self._state != CaptureState.IDLE:
            logger.debug(f"Viewport changed during {self._state.name}; aborting gesture")
            self._reset()
        self._viewport = viewport

    def set_store(self, store: AnnotationStore) -> None:
        """Commit future annotations to another store. Aborts any gesture in progress."""
        if self._state != CaptureState.IDLE:
            logger.debug(f"Store replaced during {self._state.name}; aborting gesture")
            self._reset()
        self._store = store

    def set_text_input(self, text_input: Optional[TextInputProvider]) -> None:
        self._text_input = text_input

    def pointer_down(self, surface_point: Point, tool: Tool) -> None:
        """Handle a press on the surface with the active tool."""
        if self._state != CaptureState.IDLE:
            return

        if tool == Tool.PAN:
            self._state = CaptureState.PANNING
            self._pan_origin = surface_point
            self._pan_delta = (0.0, 0.0)
            return

        if tool in _DRAWING_TOOLS:
            anchor = self._convert(surface_point)
            if anchor is None:
                return
            self._state = CaptureState.DRAWING
            self._drawing_tool = tool
            self._anchor = anchor
            self._preview = PreviewShape(_DRAWING_TOOLS[tool], surface_point, surface_point)

    def pointer_move(self, surface_point: Point) -> None:
        """Handle pointer motion; updates the preview or the pan offset."""
        if self._state == CaptureState.PANNING and self._pan_origin is not None:
            self._pan_delta = (
                surface_point.x - self._pan_origin.x,
                surface_point.y - self._pan_origin.y,
            )
            return

        if self._state != CaptureState.DRAWING:
            return

        if self._viewport is None:
            logger.debug("Viewport lost during drag; aborting gesture")
            self._reset()
            return

        anchor_surface = self._viewport.to_surface(self._anchor)
        self._preview = PreviewShape(
            _DRAWING_TOOLS[self._drawing_tool],
            anchor_surface,
            surface_point,
        )

    def pointer_up(self, surface_point: Point) -> Optional[str]:
        """
        Handle a release on the surface.

        Returns:
            The identifier of the committed annotation, or None if nothing was created.
        """
        if self._state == CaptureState.PANNING:
            self._reset()
            return None

        if self._state != CaptureState.DRAWING:
            return None

        released = self._convert(surface_point)
        if released is None:
            return None

        tool = self._drawing_tool
        anchor = self._anchor
        self._reset()

        if tool == Tool.LINE:
            annotation = AnnotationFactory.line(anchor, released)
        else:
            annotation = AnnotationFactory.circle_through(anchor, released)

        return self._store.append(annotation)

    def pointer_leave(self) -> None:
        """Pointer left the surface; any gesture in progress is dropped."""
        if self._state != CaptureState.IDLE:
            logger.debug(f"Pointer left surface during {self._state.name}; gesture cancelled")
        self._reset()

    def cancel(self) -> None:
        self.pointer_leave()

    def click(self, surface_point: Point, tool: Tool) -> Optional[str]:
        """
        Handle a click with the text tool.

        Ignored unless IDLE. Text comes from the text-input collaborator;
        empty or cancelled input creates nothing.

        Returns:
            The identifier of the committed text annotation, or None.
        """
        if self._state != CaptureState.IDLE or tool != Tool.TEXT:
            return None

        point = self._convert(surface_point)
        if point is None:
            return None

        if self._text_input is None:
            logger.debug("No text input provider installed; text click ignored")
            return None

        text_result = validate_annotation_text(self._text_input())
        if text_result.is_failure():
            logger.debug(f"Empty text discarded: {text_result.get_error().message}")
            return None

        font_size = self._viewport.length_to_document(self._nominal_font_size)
        annotation = AnnotationFactory.text(point, text_result.unwrap(), font_size)
        return self._store.append(annotation)

    def _convert(self, surface_point: Point) -> Optional[Point]:
        """Map a surface point to document space, aborting the gesture on failure."""
        result: Result[Point] = to_document(self._viewport, surface_point).on_failure(
            lambda error: error.log(logger)
        )
        if result.is_failure():
            self._reset()
            return None
        return result.unwrap()

    def _reset(self) -> None:
        self._state = CaptureState.IDLE
        self._drawing_tool = None
        self._anchor = None
        self._preview = None
        self._pan_origin = None
        self._pan_delta = (0.0, 0.0)
