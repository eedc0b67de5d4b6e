"""
Coordinate transforms between the rendering surface and PDF document space.

Document space has its origin at the bottom-left of the page with Y
increasing upward, in PDF points. Surface space has its origin at the
top-left with Y increasing downward, in device pixels at the current scale.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import math

from PyQt6.QtGui import QTransform

from core.error_types import (
    Result,
    Success,
    Failure,
    InvalidViewportError,
)
from models.annotation import Point


def _is_positive_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


@dataclass(frozen=True)
class Viewport:
    """Scale and page size defining the surface/document mapping at one zoom."""

    scale: float
    page_width_doc: float
    page_height_doc: float

    def __post_init__(self):
        if not _is_positive_finite(self.scale):
            raise ValueError(f"Viewport scale must be positive, got {self.scale!r}")
        if not (_is_positive_finite(self.page_width_doc) and _is_positive_finite(self.page_height_doc)):
            raise ValueError(
                f"Viewport page size must be positive, got "
                f"{self.page_width_doc!r} x {self.page_height_doc!r}"
            )

    @classmethod
    def create(
        cls,
        scale: Optional[float],
        page_width: Optional[float],
        page_height: Optional[float],
    ) -> Result[Viewport]:
        """
        Build a viewport, reporting degenerate parameters as a Failure.

        Args:
            scale: Render scale (surface pixels per document point).
            page_width: Page width in document units.
            page_height: Page height in document units.

        Returns:
            Result containing the Viewport or an InvalidViewportError.
        """
        if not _is_positive_finite(scale):
            return Failure(InvalidViewportError(
                message=f"Scale must be a positive number, got {scale!r}",
                scale=scale,
            ))
        if not (_is_positive_finite(page_width) and _is_positive_finite(page_height)):
            return Failure(InvalidViewportError(
                message=f"Page dimensions missing or invalid: {page_width!r} x {page_height!r}",
                scale=scale,
            ))
        return Success(cls(float(scale), float(page_width), float(page_height)))

    @property
    def page_width_surface(self) -> float:
        return self.page_width_doc * self.scale

    @property
    def page_height_surface(self) -> float:
        return self.page_height_doc * self.scale

    @property
    def surface_size(self) -> Tuple[float, float]:
        return (self.page_width_surface, self.page_height_surface)

    def to_document(self, surface_point: Point) -> Point:
        """Transform a point from surface coordinates to document coordinates."""
        return Point(
            surface_point.x / self.scale,
            self.page_height_doc - (surface_point.y / self.scale),
        )

    def to_surface(self, document_point: Point) -> Point:
        """Transform a point from document coordinates to surface coordinates."""
        return Point(
            document_point.x * self.scale,
            (self.page_height_doc - document_point.y) * self.scale,
        )

    def length_to_surface(self, distance: float) -> float:
        """Scale a distance value from document to surface space."""
        return distance * self.scale

    def length_to_document(self, distance: float) -> float:
        """Scale a distance value from surface to document space."""
        return distance / self.scale

    def with_scale(self, new_scale: float) -> Result[Viewport]:
        """Create a new viewport for the same page at a different scale."""
        return Viewport.create(new_scale, self.page_width_doc, self.page_height_doc)

    def to_qtransform(self) -> QTransform:
        """Build the document to surface transformation matrix for a QPainter."""
        transform = QTransform()
        transform.scale(self.scale, self.scale)
        transform.scale(1, -1)
        transform.translate(0, -self.page_height_doc)
        return transform


def to_document(viewport: Optional[Viewport], surface_point: Point) -> Result[Point]:
    """Surface to document conversion that tolerates a missing viewport."""
    if viewport is None:
        return Failure(InvalidViewportError(message="No document loaded; viewport is absent"))
    return Success(viewport.to_document(surface_point))


def to_surface(viewport: Optional[Viewport], document_point: Point) -> Result[Point]:
    """Document to surface conversion that tolerates a missing viewport."""
    if viewport is None:
        return Failure(InvalidViewportError(message="No document loaded; viewport is absent"))
    return Success(viewport.to_surface(document_point))
