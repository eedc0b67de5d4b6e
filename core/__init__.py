"""Core package - coordinate transforms, gesture capture, and session management."""

__all__ = [
    "Result",
    "Success",
    "Failure",
    "InvalidViewportError",
    "DocumentLoadError",
    "FontEmbedError",
    "CompositionError",
    "CompositionCancelledError",
    "ValidationError",
    "Viewport",
    "AnnotationStore",
    "CaptureStateMachine",
    "PDFEngine",
    "AnnotationSession",
]

_ERROR_NAMES = (
    "Result",
    "Success",
    "Failure",
    "InvalidViewportError",
    "DocumentLoadError",
    "FontEmbedError",
    "CompositionError",
    "CompositionCancelledError",
    "ValidationError",
)


# Lazy imports to avoid circular dependencies
def __getattr__(name):
    if name in _ERROR_NAMES:
        from core import error_types
        return getattr(error_types, name)
    elif name == "Viewport":
        from core.viewport import Viewport
        return Viewport
    elif name == "AnnotationStore":
        from core.annotation_store import AnnotationStore
        return AnnotationStore
    elif name == "CaptureStateMachine":
        from core.capture import CaptureStateMachine
        return CaptureStateMachine
    elif name == "PDFEngine":
        from core.pdf_engine import PDFEngine
        return PDFEngine
    elif name == "AnnotationSession":
        from core.document_manager import AnnotationSession
        return AnnotationSession
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
