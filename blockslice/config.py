"""Engine configuration: detection constants, heuristic thresholds, confidence labels."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


# ---------------------------------------------------------------------------
# Heuristic suggester thresholds
# ---------------------------------------------------------------------------
SQUARE_TOLERANCE = 0.1
LARGE_SQUARE_PIXELS = 2000 * 2000
WIDE_RATIO = 2.0
TALL_RATIO = 0.5
LANDSCAPE_BAND: Tuple[float, float] = (1.3, 1.8)    # ~16:9
PORTRAIT_BAND: Tuple[float, float] = (0.5, 0.8)     # ~9:16
MAX_ELONGATED_COUNT = 8

# ---------------------------------------------------------------------------
# Edge detector defaults
# ---------------------------------------------------------------------------
MAX_DETECTION_DIM = 800
EDGE_THRESHOLD = 40.0
EDGE_COVERAGE = 0.3
SPACING_TOLERANCE = 0.05
MAX_GRID_COUNT = 10
EDGE_MERGE_GAP = 2
EDGE_BAND_RATIO = 0.03


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, like ``Math.round`` in the browser."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class GridSuggestion:
    """Suggested grid split for an image."""
    rows: int
    cols: int
    confidence: Confidence
    reason: str

    def __post_init__(self):
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid must be at least 1x1, got {self.rows}x{self.cols}")
        if not isinstance(self.confidence, Confidence):
            object.__setattr__(self, "confidence", Confidence(self.confidence))

    def to_dict(self) -> dict:
        return {
            "rows": int(self.rows),
            "cols": int(self.cols),
            "confidence": self.confidence.value,
            "reason": str(self.reason),
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "GridSuggestion":
        return cls(
            rows=int(d["rows"]),
            cols=int(d["cols"]),
            confidence=Confidence(d.get("confidence", "low")),
            reason=d.get("reason", ""),
        )


@dataclass
class DetectionConfig:
    """Tunable constants for the edge-based detector.

    The defaults trade recall against false positives on noisy or textured
    images; none of them are derived.
    """
    max_dim: int = MAX_DETECTION_DIM            # longest side after downsampling
    edge_threshold: float = EDGE_THRESHOLD      # mean per-channel gradient
    edge_coverage: float = EDGE_COVERAGE        # fraction of the line that must be edge
    spacing_tolerance: float = SPACING_TOLERANCE  # bucket width, fraction of dimension
    max_count: int = MAX_GRID_COUNT
    merge_gap: int = EDGE_MERGE_GAP             # 0 keeps every edge position
    band_ratio: float = EDGE_BAND_RATIO         # widest divider, fraction of dimension

    def __post_init__(self):
        if self.max_dim < 1:
            raise ValueError(f"max_dim must be positive, got {self.max_dim}")
        if not 0.0 <= self.edge_coverage <= 1.0:
            raise ValueError(f"edge_coverage must be within [0, 1], got {self.edge_coverage}")
        if self.spacing_tolerance < 0:
            raise ValueError(f"spacing_tolerance must be >= 0, got {self.spacing_tolerance}")
        if self.max_count < 2:
            raise ValueError(f"max_count must be at least 2, got {self.max_count}")
        if self.merge_gap < 0:
            raise ValueError(f"merge_gap must be >= 0, got {self.merge_gap}")
        if self.band_ratio < 0:
            raise ValueError(f"band_ratio must be >= 0, got {self.band_ratio}")
