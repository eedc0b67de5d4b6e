from models.annotation import (
    Tool,
    AnnotationKind,
    Point,
    AnnotationBase,
    TextAnnotation,
    LineAnnotation,
    CircleAnnotation,
    Annotation,
    AnnotationFactory,
)
from models.settings import (
    AppSettings,
    ViewerSettings,
    AnnotationSettings,
    CompositionOptions,
)

__all__ = [
    "Tool",
    "AnnotationKind",
    "Point",
    "AnnotationBase",
    "TextAnnotation",
    "LineAnnotation",
    "CircleAnnotation",
    "Annotation",
    "AnnotationFactory",
    "AppSettings",
    "ViewerSettings",
    "AnnotationSettings",
    "CompositionOptions",
]
