"""
Aspect-ratio grid suggestions.

No pixel access: the suggestion is a pure function of the image dimensions.
Rules are evaluated in order and the first match wins, since some of the
aspect-ratio bands touch each other.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .config import (
    LANDSCAPE_BAND,
    LARGE_SQUARE_PIXELS,
    MAX_ELONGATED_COUNT,
    PORTRAIT_BAND,
    SQUARE_TOLERANCE,
    TALL_RATIO,
    WIDE_RATIO,
    Confidence,
    GridSuggestion,
    round_half_up,
)

Rule = Callable[[float, int], Optional[GridSuggestion]]


def _square(aspect: float, total_pixels: int) -> Optional[GridSuggestion]:
    if abs(aspect - 1.0) >= SQUARE_TOLERANCE:
        return None
    if total_pixels > LARGE_SQUARE_PIXELS:
        return GridSuggestion(4, 4, Confidence.HIGH, "Large square image, 4×4 grid suggested")
    return GridSuggestion(3, 3, Confidence.HIGH, "Square image, 3×3 grid suggested")


def _wide(aspect: float, total_pixels: int) -> Optional[GridSuggestion]:
    if aspect <= WIDE_RATIO:
        return None
    cols = min(round_half_up(aspect * 2), MAX_ELONGATED_COUNT)
    return GridSuggestion(2, cols, Confidence.MEDIUM, "Wide panorama, horizontal slicing suggested")


def _tall(aspect: float, total_pixels: int) -> Optional[GridSuggestion]:
    if aspect >= TALL_RATIO:
        return None
    rows = min(round_half_up((1.0 / aspect) * 2), MAX_ELONGATED_COUNT)
    return GridSuggestion(rows, 2, Confidence.MEDIUM, "Tall image, vertical slicing suggested")


def _landscape(aspect: float, total_pixels: int) -> Optional[GridSuggestion]:
    low, high = LANDSCAPE_BAND
    if not low < aspect < high:
        return None
    return GridSuggestion(3, 4, Confidence.HIGH, "16:9 landscape image, 3×4 grid suggested")


def _portrait(aspect: float, total_pixels: int) -> Optional[GridSuggestion]:
    low, high = PORTRAIT_BAND
    if not low < aspect < high:
        return None
    return GridSuggestion(4, 3, Confidence.HIGH, "9:16 portrait image, 4×3 grid suggested")


def _fallback(aspect: float, total_pixels: int) -> GridSuggestion:
    if aspect > 1.0:
        return GridSuggestion(3, 4, Confidence.LOW, "Landscape image, default 3×4 grid")
    return GridSuggestion(4, 3, Confidence.LOW, "Portrait image, default 4×3 grid")


RULES: List[Tuple[str, Rule]] = [
    ("square", _square),
    ("wide", _wide),
    ("tall", _tall),
    ("landscape", _landscape),
    ("portrait", _portrait),
]


def suggest_grid_dimensions(width: int, height: int) -> GridSuggestion:
    """Suggest a grid from the image dimensions alone.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A GridSuggestion. Never raises: non-positive dimensions produce the
        low-confidence landscape default.
    """
    if width <= 0 or height <= 0:
        return GridSuggestion(
            3, 4, Confidence.LOW,
            f"Invalid image dimensions {width}×{height}, default 3×4 grid",
        )

    aspect = width / height
    total_pixels = width * height
    for _name, rule in RULES:
        suggestion = rule(aspect, total_pixels)
        if suggestion is not None:
            return suggestion
    return _fallback(aspect, total_pixels)
