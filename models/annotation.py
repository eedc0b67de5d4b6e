from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Dict, Any, Tuple, Union
import math
import uuid


class Tool(Enum):
    """Tools a pointer gesture can be made with."""
    SELECT = auto()
    PAN = auto()
    TEXT = auto()
    LINE = auto()
    CIRCLE = auto()


class AnnotationKind(Enum):
    """Types of annotations supported by the engine."""
    TEXT = auto()
    LINE = auto()
    CIRCLE = auto()


@dataclass(frozen=True)
class Point:
    """Immutable 2D point. Document space unless produced by a surface transform."""

    x: float
    y: float

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: Point) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class AnnotationBase(ABC):
    """Fields shared by every annotation record."""

    annotation_id: str

    @property
    @abstractmethod
    def kind(self) -> AnnotationKind:
        """Variant tag of the record."""
        pass

    def describe(self) -> Dict[str, Any]:
        """Flat description used in log messages."""
        return {"id": self.annotation_id, "kind": self.kind.name}


@dataclass(frozen=True)
class TextAnnotation(AnnotationBase):
    """Text label anchored at its baseline; font size is in document units."""

    point: Point
    text: str
    font_size: float

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.TEXT


@dataclass(frozen=True)
class LineAnnotation(AnnotationBase):
    """Straight line between two document-space endpoints."""

    start: Point
    end: Point

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.LINE

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)


@dataclass(frozen=True)
class CircleAnnotation(AnnotationBase):
    """Stroked circle. A zero radius is kept and renders as a dot."""

    center: Point
    radius: float

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.CIRCLE


Annotation = Union[TextAnnotation, LineAnnotation, CircleAnnotation]


class AnnotationFactory:
    """Factory for creating annotation records with fresh identifiers."""

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def text(
        cls,
        point: Point,
        text: str,
        font_size: float,
        annotation_id: Optional[str] = None,
    ) -> TextAnnotation:
        if not text:
            raise ValueError("Text annotations need non-empty text")
        return TextAnnotation(
            annotation_id=annotation_id or cls.new_id(),
            point=point,
            text=text,
            font_size=font_size,
        )

    @classmethod
    def line(
        cls,
        start: Point,
        end: Point,
        annotation_id: Optional[str] = None,
    ) -> LineAnnotation:
        return LineAnnotation(
            annotation_id=annotation_id or cls.new_id(),
            start=start,
            end=end,
        )

    @classmethod
    def circle(
        cls,
        center: Point,
        radius: float,
        annotation_id: Optional[str] = None,
    ) -> CircleAnnotation:
        return CircleAnnotation(
            annotation_id=annotation_id or cls.new_id(),
            center=center,
            radius=radius,
        )

    @classmethod
    def circle_through(
        cls,
        center: Point,
        rim_point: Point,
        annotation_id: Optional[str] = None,
    ) -> CircleAnnotation:
        """Circle centred at ``center`` passing through ``rim_point``."""
        return cls.circle(center, center.distance_to(rim_point), annotation_id)
