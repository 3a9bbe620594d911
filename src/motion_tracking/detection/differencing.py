"""
Frame Differencing - stateless comparisons between buffered frames.

- frame difference: |current - previous| > threshold
- temporal difference: two consecutive differences must both fire,
  which suppresses single-frame flicker
- edge based: differences Sobel edge maps instead of raw intensity,
  which tolerates global illumination changes
"""

from collections.abc import Sequence

import numpy as np

from ..models import MotionAlgorithm
from ..regions import threshold_mask
from .base import BaseMaskDetector
from .edges import sobel_magnitude
from .registry import register


def frame_difference(current: np.ndarray, previous: np.ndarray) -> np.ndarray:
    """Absolute per-pixel difference."""
    return np.abs(current - previous)


def temporal_difference_mask(
    current: np.ndarray,
    previous: np.ndarray,
    before_previous: np.ndarray,
    threshold: float,
) -> np.ndarray:
    """AND of the two consecutive thresholded differences."""
    recent = frame_difference(current, previous) > threshold
    earlier = frame_difference(previous, before_previous) > threshold
    return np.where(recent & earlier, 255, 0).astype(np.uint8)


@register(MotionAlgorithm.FRAME_DIFFERENCE)
class FrameDifferenceDetector(BaseMaskDetector):
    """Two-frame intensity difference."""

    algorithm = MotionAlgorithm.FRAME_DIFFERENCE
    frames_required = 2
    region_prefix = "diff"

    def compute_mask(self, history: Sequence[np.ndarray]) -> np.ndarray:
        return threshold_mask(
            frame_difference(history[-1], history[-2]), self.settings.threshold
        )


@register(MotionAlgorithm.TEMPORAL_DIFFERENCE)
class TemporalDifferenceDetector(BaseMaskDetector):
    """Three-frame difference."""

    algorithm = MotionAlgorithm.TEMPORAL_DIFFERENCE
    frames_required = 3
    region_prefix = "temporal"

    def compute_mask(self, history: Sequence[np.ndarray]) -> np.ndarray:
        return temporal_difference_mask(
            history[-1], history[-2], history[-3], self.settings.threshold
        )


@register(MotionAlgorithm.EDGE_BASED)
class EdgeBasedDetector(BaseMaskDetector):
    """Difference of Sobel edge maps."""

    algorithm = MotionAlgorithm.EDGE_BASED
    frames_required = 2
    region_prefix = "edge"

    def compute_mask(self, history: Sequence[np.ndarray]) -> np.ndarray:
        current_edges = sobel_magnitude(history[-1])
        previous_edges = sobel_magnitude(history[-2])
        return threshold_mask(
            frame_difference(current_edges, previous_edges), self.settings.threshold
        )
