"""
Overlay Renderer

Paints annotations over a rendered page surface with QPainter. Committed
annotations are mapped from document space through the Viewport; the
live preview is already in surface space and is drawn as is.
"""

from __future__ import annotations
import math
from typing import Iterable, Optional
import logging

from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtGui import QColor, QFont, QImage, QPainter, QPen

from core.capture import PreviewShape
from core.viewport import Viewport
from models.annotation import (
    Annotation,
    AnnotationKind,
    CircleAnnotation,
    LineAnnotation,
    Point,
    TextAnnotation,
)
from models.settings import AnnotationSettings

logger = logging.getLogger(__name__)


def _qpoint(point: Point) -> QPointF:
    return QPointF(point.x, point.y)


class OverlayRenderer:
    """Draws annotations and the in-progress preview onto a surface."""

    def __init__(self, settings: Optional[AnnotationSettings] = None):
        self._settings = settings or AnnotationSettings()

    @property
    def stroke_color(self) -> QColor:
        return QColor.fromRgbF(*self._settings.stroke_rgb)

    def _pen(self) -> QPen:
        pen = QPen(self.stroke_color)
        pen.setWidthF(self._settings.stroke_width)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        return pen

    def paint(
        self,
        painter: QPainter,
        viewport: Viewport,
        annotations: Iterable[Annotation],
        preview: Optional[PreviewShape] = None,
    ) -> None:
        """
        Paint annotations in order, then the preview on top.

        Args:
            painter: Active painter on a surface of ``viewport.surface_size``.
            viewport: Mapping for the current scale.
            annotations: Document-space annotations in paint order.
            preview: Optional surface-space shape being dragged.
        """
        painter.save()
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(self._pen())
        painter.setBrush(Qt.BrushStyle.NoBrush)

        for annotation in annotations:
            self._draw_annotation(painter, viewport, annotation)

        if preview is not None:
            self._draw_preview(painter, preview)

        painter.restore()

    def render_to_image(
        self,
        viewport: Viewport,
        annotations: Iterable[Annotation],
        preview: Optional[PreviewShape] = None,
    ) -> QImage:
        """Render the overlay alone onto a transparent image the size of the page surface."""
        width, height = viewport.surface_size
        image = QImage(
            max(1, math.ceil(width)),
            max(1, math.ceil(height)),
            QImage.Format.Format_ARGB32_Premultiplied,
        )
        image.fill(Qt.GlobalColor.transparent)

        painter = QPainter(image)
        try:
            self.paint(painter, viewport, annotations, preview)
        finally:
            painter.end()
        return image

    def _draw_annotation(self, painter: QPainter, viewport: Viewport, annotation: Annotation) -> None:
        if isinstance(annotation, LineAnnotation):
            painter.drawLine(
                _qpoint(viewport.to_surface(annotation.start)),
                _qpoint(viewport.to_surface(annotation.end)),
            )

        elif isinstance(annotation, CircleAnnotation):
            center = viewport.to_surface(annotation.center)
            radius = viewport.length_to_surface(annotation.radius)
            if radius == 0:
                painter.drawPoint(_qpoint(center))
            else:
                painter.drawEllipse(_qpoint(center), radius, radius)

        elif isinstance(annotation, TextAnnotation):
            self._draw_text(painter, viewport, annotation)

        else:
            logger.warning(f"Skipping unsupported annotation type: {type(annotation).__name__}")

    def _draw_text(self, painter: QPainter, viewport: Viewport, annotation: TextAnnotation) -> None:
        font = QFont(self._settings.font_family)
        pixel_size = viewport.length_to_surface(annotation.font_size)
        font.setPixelSize(max(1, round(pixel_size)))

        painter.save()
        painter.setFont(font)
        # The anchor is the baseline origin, as in the baked document.
        painter.drawText(_qpoint(viewport.to_surface(annotation.point)), annotation.text)
        painter.restore()

    def _draw_preview(self, painter: QPainter, preview: PreviewShape) -> None:
        if preview.kind == AnnotationKind.CIRCLE:
            radius = preview.radius
            if radius == 0:
                painter.drawPoint(_qpoint(preview.start))
            else:
                painter.drawEllipse(preview.bounding_qrect())
        else:
            painter.drawLine(preview.to_qline())
