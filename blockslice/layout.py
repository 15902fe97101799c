"""Cell geometry for a chosen grid: crop mode, block size, per-cell boxes."""

from __future__ import annotations

from typing import List, Tuple

from .config import round_half_up

CROP_MODES = ("original", "square")

Box = Tuple[int, int, int, int]  # (x, y, w, h)


def _check_dims(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")


def _check_grid(rows: int, cols: int) -> None:
    if rows < 1 or cols < 1:
        raise ValueError(f"Grid must be at least 1x1, got {rows}x{cols}")


def crop_origin(width: int, height: int, crop_mode: str = "original") -> Tuple[int, int]:
    """Top-left corner of the processed area inside the source image."""
    w, h = processed_dimensions(width, height, crop_mode)
    return (width - w) // 2, (height - h) // 2


def processed_dimensions(width: int, height: int, crop_mode: str = "original") -> Tuple[int, int]:
    """Size of the area that gets sliced; ``square`` takes the centred square."""
    _check_dims(width, height)
    if crop_mode == "original":
        return width, height
    if crop_mode == "square":
        side = min(width, height)
        return side, side
    raise ValueError(f"Unknown crop mode: {crop_mode} (expected one of {CROP_MODES})")


def block_size(width: int, height: int, rows: int, cols: int) -> Tuple[int, int]:
    """Nominal ``(w, h)`` of a single cell, as shown next to the preview."""
    _check_dims(width, height)
    _check_grid(rows, cols)
    return round_half_up(width / cols), round_half_up(height / rows)


def _splits(length: int, parts: int) -> List[Tuple[int, int]]:
    step = length // parts
    spans = []
    for i in range(parts):
        start = i * step
        end = length if i == parts - 1 else start + step
        spans.append((start, end - start))
    return spans


def cell_boxes(width: int, height: int, rows: int, cols: int,
               crop_mode: str = "original") -> List[Box]:
    """Row-major boxes covering the processed area exactly.

    Leftover pixels from uneven division go to the last row and column.
    """
    _check_grid(rows, cols)
    area_w, area_h = processed_dimensions(width, height, crop_mode)
    if cols > area_w or rows > area_h:
        raise ValueError(f"{rows}x{cols} grid does not fit a {area_w}x{area_h} area")
    ox, oy = crop_origin(width, height, crop_mode)
    boxes = []
    for y, h in _splits(area_h, rows):
        for x, w in _splits(area_w, cols):
            boxes.append((ox + x, oy + y, w, h))
    return boxes


def cell_index(row: int, col: int, cols: int) -> int:
    return row * cols + col


def cell_position(index: int, cols: int) -> Tuple[int, int]:
    """Inverse of cell_index: ``(row, col)``."""
    return divmod(index, cols)
