"""
PDF content stream generation for annotations.

Everything is written in PDF user space, which is the document space the
annotations are stored in, so coordinates go into the operators unchanged.
"""

from __future__ import annotations
from typing import List, Tuple
import math

from models.annotation import (
    Annotation,
    CircleAnnotation,
    LineAnnotation,
    TextAnnotation,
)
from utils.geometry import circle_bezier_segments, format_pdf_number

# Base-14 simple fonts are addressed through WinAnsiEncoding, which cp1252 matches.
TEXT_ENCODING = "cp1252"

LINE_CAP_ROUND = 1
LINE_JOIN_ROUND = 1


class InvalidGeometry(ValueError):
    """An annotation carries values that cannot be written to a PDF."""


def _num(value: float) -> str:
    if not math.isfinite(value):
        raise InvalidGeometry(f"Non-finite value {value!r}")
    return format_pdf_number(value)


def _point(x: float, y: float) -> str:
    return f"{_num(x)} {_num(y)}"


def encode_text(text: str) -> bytes:
    """
    Encode annotation text for a Tj operator as a hex string.

    Raises:
        UnicodeEncodeError: If a character has no glyph code in the font encoding.
    """
    return b"<" + text.encode(TEXT_ENCODING).hex().upper().encode("ascii") + b">"


class ContentStreamBuilder:
    """Accumulates drawing operators for annotations in paint order."""

    def __init__(
        self,
        stroke_rgb: Tuple[float, float, float],
        stroke_width: float,
        font_name: str,
    ):
        self._colour = " ".join(_num(component) for component in stroke_rgb)
        self._stroke_width = _num(stroke_width)
        self._font_name = font_name
        self._blocks: List[bytes] = []

    def __len__(self) -> int:
        return len(self._blocks)

    def add(self, annotation: Annotation) -> None:
        """Append the operators for one annotation, isolated in its own q/Q pair."""
        if isinstance(annotation, TextAnnotation):
            self.add_text(annotation)
        elif isinstance(annotation, LineAnnotation):
            self.add_line(annotation)
        elif isinstance(annotation, CircleAnnotation):
            self.add_circle(annotation)
        else:
            raise TypeError(f"Unsupported annotation type: {type(annotation).__name__}")

    def add_text(self, annotation: TextAnnotation) -> None:
        if not annotation.font_size > 0:
            raise InvalidGeometry(f"Font size must be positive, got {annotation.font_size!r}")

        lines = [
            b"q",
            b"BT",
            f"{self._colour} rg".encode("ascii"),
            f"/{self._font_name} {_num(annotation.font_size)} Tf".encode("ascii"),
            f"1 0 0 1 {_point(annotation.point.x, annotation.point.y)} Tm".encode("ascii"),
            encode_text(annotation.text) + b" Tj",
            b"ET",
            b"Q",
        ]
        self._blocks.append(b"\n".join(lines))

    def add_line(self, annotation: LineAnnotation) -> None:
        path = [
            f"{_point(annotation.start.x, annotation.start.y)} m",
            f"{_point(annotation.end.x, annotation.end.y)} l",
            "S",
        ]
        self._blocks.append(self._stroked(path))

    def add_circle(self, annotation: CircleAnnotation) -> None:
        radius = annotation.radius
        if not math.isfinite(radius) or radius < 0:
            raise InvalidGeometry(f"Circle radius must be a non-negative number, got {radius!r}")

        center = annotation.center.to_tuple()
        if radius == 0:
            # A zero-length round-capped segment paints a dot.
            path = [
                f"{_point(*center)} m",
                f"{_point(*center)} l",
                "S",
            ]
        else:
            start, segments = circle_bezier_segments(center, radius)
            path = [f"{_point(*start)} m"]
            for control1, control2, end in segments:
                path.append(f"{_point(*control1)} {_point(*control2)} {_point(*end)} c")
            path.extend(["h", "S"])
        self._blocks.append(self._stroked(path))

    def _stroked(self, path: List[str]) -> bytes:
        lines = [
            "q",
            f"{self._colour} RG",
            f"{self._stroke_width} w",
            f"{LINE_CAP_ROUND} J",
            f"{LINE_JOIN_ROUND} j",
            *path,
            "Q",
        ]
        return "\n".join(lines).encode("ascii")

    def build(self) -> bytes:
        """Return the accumulated stream body."""
        return b"\n".join(self._blocks) + b"\n"
