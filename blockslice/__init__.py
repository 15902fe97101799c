"""Public interface for the BlockSlice grid suggestion engine."""

from __future__ import annotations

from .config import Confidence, DetectionConfig, GridSuggestion
from .detection import (
    detect_grid_in_buffer,
    detect_grid_lines,
    detect_grid_lines_async,
    find_regular_pattern,
    suggest_grid,
)
from .heuristics import suggest_grid_dimensions
from .layout import block_size, cell_boxes, processed_dimensions
from .raster import OpenCVRasterizer, PillowRasterizer, PixelBuffer, downsample_size

__all__ = [
    "Confidence",
    "DetectionConfig",
    "GridSuggestion",
    "OpenCVRasterizer",
    "PillowRasterizer",
    "PixelBuffer",
    "block_size",
    "cell_boxes",
    "detect_grid_in_buffer",
    "detect_grid_lines",
    "detect_grid_lines_async",
    "downsample_size",
    "find_regular_pattern",
    "processed_dimensions",
    "suggest_grid",
    "suggest_grid_dimensions",
]
