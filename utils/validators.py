from __future__ import annotations
from typing import Optional
import math

from core.error_types import (
    Result,
    Success,
    Failure,
    ValidationError,
)

PDF_HEADER = b"%PDF-"

# The header must appear within the first 1024 bytes of the file.
PDF_HEADER_SEARCH_WINDOW = 1024


def validate_zoom_level(
    zoom_level: float,
    min_zoom: float = 0.2,
    max_zoom: float = 5.0,
) -> Result[float]:
    """
    Validate a zoom level.

    Args:
        zoom_level: Zoom level to validate.
        min_zoom: Minimum allowed zoom.
        max_zoom: Maximum allowed zoom.

    Returns:
        Result containing the validated zoom level.
    """
    if not isinstance(zoom_level, (int, float)) or isinstance(zoom_level, bool):
        return Failure(ValidationError(
            message="Zoom level must be a number",
            field_name="zoom_level",
            invalid_value=str(zoom_level),
        ))

    if not math.isfinite(zoom_level):
        return Failure(ValidationError(
            message="Zoom level must be finite",
            field_name="zoom_level",
            invalid_value=str(zoom_level),
        ))

    if zoom_level < min_zoom or zoom_level > max_zoom:
        return Failure(ValidationError(
            message=f"Zoom level must be between {min_zoom} and {max_zoom}",
            field_name="zoom_level",
            invalid_value=str(zoom_level),
        ))

    return Success(float(zoom_level))


def clamp_zoom_level(
    zoom_level: float,
    min_zoom: float = 0.2,
    max_zoom: float = 5.0,
) -> float:
    """Clamp a zoom level into the allowed range."""
    return max(min_zoom, min(max_zoom, zoom_level))


def validate_annotation_text(text: Optional[str]) -> Result[str]:
    """
    Validate text typed for a text annotation.

    Empty or cancelled input (None) is reported as a failure so callers can
    drop the gesture.
    """
    if text is None:
        return Failure(ValidationError(
            message="Text input was cancelled",
            field_name="text",
        ))

    if text == "":
        return Failure(ValidationError(
            message="Text input is empty",
            field_name="text",
            invalid_value="",
        ))

    return Success(text)


def validate_pdf_bytes(data: Optional[bytes]) -> Result[bytes]:
    """
    Check that a byte buffer looks like a PDF without parsing it.

    Args:
        data: Raw document bytes.

    Returns:
        Result containing the same bytes or a validation error.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        return Failure(ValidationError(
            message="Document data must be bytes",
            field_name="document_bytes",
            invalid_value=type(data).__name__,
        ))

    data = bytes(data)
    if not data:
        return Failure(ValidationError(
            message="Document data is empty",
            field_name="document_bytes",
        ))

    if PDF_HEADER not in data[:PDF_HEADER_SEARCH_WINDOW]:
        return Failure(ValidationError(
            message="Document data does not start with a PDF header",
            field_name="document_bytes",
            invalid_value=repr(data[:8]),
        ))

    return Success(data)


def validate_page_index(page_index: int, page_count: int) -> Result[int]:
    """
    Validate the target page index.

    Only the first page is supported.
    """
    if not isinstance(page_index, int) or isinstance(page_index, bool):
        return Failure(ValidationError(
            message="Page index must be an integer",
            field_name="page_index",
            invalid_value=str(page_index),
        ))

    if page_index != 0:
        return Failure(ValidationError(
            message="Only the first page (index 0) can be annotated",
            field_name="page_index",
            invalid_value=str(page_index),
        ))

    if page_count < 1:
        return Failure(ValidationError(
            message="Document has no pages",
            field_name="page_index",
            invalid_value=str(page_index),
        ))

    return Success(page_index)
