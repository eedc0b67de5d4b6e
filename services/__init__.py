"""
Services Package

Composition of annotations into document content and overlay painting.
"""

from services.composition_service import CompositionService, CancellationToken
from services.overlay_renderer import OverlayRenderer

__all__ = [
    "CompositionService",
    "CancellationToken",
    "OverlayRenderer",
]
