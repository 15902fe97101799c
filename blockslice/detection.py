"""Detect a grid that is already drawn into an image.

Sticker sheets, contact sheets and comic pages often carry visible dividers
between cells. The detector looks for columns and rows where most of the
line crosses a sharp brightness change, measures the recurring distance
between those lines and turns that distance into a cell count.

Pipeline:
  1. Downsample to at most ``max_dim`` on the longest side
  2. Per-column / per-row gradient coverage -> edge positions
  3. Collapse adjacent edge positions into one line each
  4. Tolerance histogram of gaps -> dominant spacing
  5. ``round(dimension / spacing)`` cells per axis

Convention: the dominant spacing is the cell size, so N interior dividers
splitting an axis evenly give N + 1 cells.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import Confidence, DetectionConfig, GridSuggestion, round_half_up
from .heuristics import suggest_grid_dimensions
from .raster import (
    ImageSource,
    PillowRasterizer,
    PixelBuffer,
    Rasterizer,
    downsample_size,
    source_size,
)

logger = logging.getLogger(__name__)

VERTICAL = "vertical"
HORIZONTAL = "horizontal"


@dataclass
class PatternEstimate:
    """Dominant spacing along one axis and the cell count it implies."""
    spacing: int = 0
    occurrences: int = 0
    raw_count: int = 1      # unclamped round(dimension / spacing)
    count: int = 1          # clamped to [1, max_count]


# ---- Edge extraction ----

def edge_strength(buffer: PixelBuffer, direction: str, threshold: float) -> np.ndarray:
    """Count, per interior column (vertical) or row (horizontal), the pixels
    whose central-difference gradient exceeds ``threshold``.

    The gradient is the mean of the absolute R, G and B differences between
    the two neighbours. Index ``i`` of the result is line ``i + 1``.
    """
    rgb = buffer.data[:, :, :3].astype(np.int16)
    if direction == VERTICAL:
        diff = np.abs(rgb[:, 2:] - rgb[:, :-2]).sum(axis=2) / 3.0
        return np.count_nonzero(diff > threshold, axis=0)
    if direction == HORIZONTAL:
        diff = np.abs(rgb[2:, :] - rgb[:-2, :]).sum(axis=2) / 3.0
        return np.count_nonzero(diff > threshold, axis=1)
    raise ValueError(f"Unknown edge direction: {direction}")


def extract_edges(buffer: PixelBuffer, direction: str,
                  threshold: float = 40.0, coverage: float = 0.3) -> List[int]:
    """Positions of columns/rows where more than ``coverage`` of the line is edge."""
    strength = edge_strength(buffer, direction, threshold)
    span = buffer.height if direction == VERTICAL else buffer.width
    positions = np.nonzero(strength > coverage * span)[0] + 1
    return [int(p) for p in positions]


def merge_adjacent_edges(edges: Sequence[int], max_gap: int = 2) -> List[int]:
    """Collapse runs of nearby edge positions into their centre.

    The central-difference gradient fires on both sides of a divider: a
    thin line leaves one short run of edge positions, a divider ``L`` pixels
    wide leaves two runs ``L - 1`` apart. ``max_gap`` must cover the widest
    divider for both sides to collapse into one line.
    """
    if max_gap <= 0 or not edges:
        return list(edges)

    merged = []
    cluster = [edges[0]]
    for pos in edges[1:]:
        if pos - cluster[-1] <= max_gap:
            cluster.append(pos)
        else:
            merged.append(int(np.mean(cluster)))
            cluster = [pos]
    merged.append(int(np.mean(cluster)))
    return merged


def divider_merge_gap(dimension: int, config: DetectionConfig) -> int:
    """Largest gap between edge positions that still belongs to one divider.

    Gutters up to ``band_ratio`` of the dimension count as a single line.
    A ``merge_gap`` of 0 turns merging off entirely.
    """
    if config.merge_gap <= 0:
        return 0
    return max(config.merge_gap, round_half_up(config.band_ratio * dimension))


# ---- Spacing estimation ----

def build_spacing_histogram(gaps: Sequence[int], tolerance: float) -> List[List[int]]:
    """Bucket gaps as ordered ``[key, count]`` pairs.

    A gap joins the first bucket whose key is strictly closer than
    ``tolerance``; otherwise it opens a new bucket keyed on itself.
    """
    buckets: List[List[int]] = []
    for gap in gaps:
        for bucket in buckets:
            if abs(gap - bucket[0]) < tolerance:
                bucket[1] += 1
                break
        else:
            buckets.append([int(gap), 1])
    return buckets


def dominant_spacing(buckets: Sequence[Sequence[int]]) -> Tuple[int, int]:
    """``(key, count)`` of the fullest bucket; ties go to the earliest one."""
    best_key, best_count = 0, 0
    for key, count in buckets:
        if count > best_count:
            best_key, best_count = key, count
    return best_key, best_count


def find_regular_pattern(edges: Sequence[int], dimension: int,
                         tolerance_ratio: float = 0.05,
                         max_count: int = 10) -> PatternEstimate:
    """Turn sorted edge positions along one axis into a cell count."""
    if len(edges) < 2:
        return PatternEstimate()

    gaps = [b - a for a, b in zip(edges, edges[1:])]
    buckets = build_spacing_histogram(gaps, dimension * tolerance_ratio)
    spacing, occurrences = dominant_spacing(buckets)

    if spacing > 0 and occurrences >= 2:
        raw = round_half_up(dimension / spacing)
        return PatternEstimate(
            spacing=spacing,
            occurrences=occurrences,
            raw_count=raw,
            count=max(1, min(max_count, raw)),
        )
    return PatternEstimate(spacing=spacing, occurrences=occurrences)


# ---- Detection entry points ----

def _axis_pattern(buffer: PixelBuffer, direction: str, cfg: DetectionConfig) -> PatternEstimate:
    edges = extract_edges(buffer, direction, cfg.edge_threshold, cfg.edge_coverage)
    dimension = buffer.width if direction == VERTICAL else buffer.height
    lines = merge_adjacent_edges(edges, divider_merge_gap(dimension, cfg))
    pattern = find_regular_pattern(lines, dimension, cfg.spacing_tolerance, cfg.max_count)
    logger.debug(
        "%s: %d edge positions -> %d lines, spacing=%d x%d, raw count=%d",
        direction, len(edges), len(lines), pattern.spacing, pattern.occurrences,
        pattern.raw_count,
    )
    return pattern


def detect_grid_in_buffer(buffer: PixelBuffer,
                          config: Optional[DetectionConfig] = None) -> Optional[GridSuggestion]:
    """Run edge analysis on an already rasterized buffer.

    Returns None when either axis shows no repeating divider or implies
    more than ``max_count`` cells.
    """
    cfg = config or DetectionConfig()
    cols = _axis_pattern(buffer, VERTICAL, cfg)
    rows = _axis_pattern(buffer, HORIZONTAL, cfg)

    if not (1 < cols.raw_count <= cfg.max_count and 1 < rows.raw_count <= cfg.max_count):
        logger.debug(
            "No grid in %dx%d buffer (rows=%d, cols=%d)",
            buffer.width, buffer.height, rows.raw_count, cols.raw_count,
        )
        return None

    return GridSuggestion(
        rows=rows.count,
        cols=cols.count,
        confidence=Confidence.HIGH,
        reason=f"Detected {rows.count}×{cols.count} grid lines",
    )


def detect_grid_lines(image: ImageSource,
                      rasterizer: Optional[Rasterizer] = None,
                      config: Optional[DetectionConfig] = None) -> Optional[GridSuggestion]:
    """Detect a grid drawn into ``image``.

    Args:
        image: PIL image, numpy array or path.
        rasterizer: Object with ``render(image, width, height) -> PixelBuffer``.
            Defaults to PillowRasterizer.
        config: Detection constants; defaults to DetectionConfig().

    Returns:
        A high-confidence GridSuggestion, or None if no grid was found or
        anything went wrong while reading the image.
    """
    cfg = config or DetectionConfig()
    surface = rasterizer or PillowRasterizer()
    try:
        width, height = source_size(image)
        target_w, target_h = downsample_size(width, height, cfg.max_dim)
        buffer = surface.render(image, target_w, target_h)
        return detect_grid_in_buffer(buffer, cfg)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Grid detection failed: %s", exc)
        return None


async def detect_grid_lines_async(image: ImageSource,
                                  rasterizer: Optional[Rasterizer] = None,
                                  config: Optional[DetectionConfig] = None) -> Optional[GridSuggestion]:
    """``detect_grid_lines`` on a worker thread."""
    return await asyncio.to_thread(detect_grid_lines, image, rasterizer, config)


def suggest_grid(image: ImageSource,
                 rasterizer: Optional[Rasterizer] = None,
                 config: Optional[DetectionConfig] = None) -> GridSuggestion:
    """Prefer a detected grid, fall back to the aspect-ratio heuristic.

    An unreadable source gets the heuristic's invalid-dimension default.
    """
    detected = detect_grid_lines(image, rasterizer, config)
    if detected is not None:
        return detected
    try:
        width, height = source_size(image)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Could not read image size: %s", exc)
        width, height = 0, 0
    return suggest_grid_dimensions(width, height)
