from __future__ import annotations
from typing import List, Tuple
import math

# Control point distance for approximating a quarter circle with one cubic Bezier.
BEZIER_CIRCLE_KAPPA = 0.5522847498


def circle_bezier_segments(
    center: Tuple[float, float],
    radius: float,
) -> Tuple[Tuple[float, float], List[Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]]]:
    """
    Approximate a circle with four cubic Bezier curves.

    Args:
        center: Circle centre (x, y).
        radius: Circle radius.

    Returns:
        The start point and a list of four (control1, control2, end) triples,
        running counter-clockwise from the rightmost point.
    """
    cx, cy = center
    k = radius * BEZIER_CIRCLE_KAPPA

    start = (cx + radius, cy)
    segments = [
        ((cx + radius, cy + k), (cx + k, cy + radius), (cx, cy + radius)),
        ((cx - k, cy + radius), (cx - radius, cy + k), (cx - radius, cy)),
        ((cx - radius, cy - k), (cx - k, cy - radius), (cx, cy - radius)),
        ((cx + k, cy - radius), (cx + radius, cy - k), (cx + radius, cy)),
    ]
    return start, segments


def format_pdf_number(value: float, precision: int = 4) -> str:
    """
    Format a number for a PDF content stream.

    PDF real numbers may not use exponent notation, so values are written in
    fixed point with trailing zeros stripped.
    """
    text = f"{value:.{precision}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text
