"""
Motion Detectors - one strategy per algorithm.

Each detector turns the buffered grayscale frames into candidate motion
regions for the newest frame. The registry maps algorithms to detector
classes; the engine builds the active detector from settings.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from ..models import MotionAlgorithm, MotionRegion
from .registry import DETECTOR_REGISTRY, build_detector

__all__ = ["DETECTOR_REGISTRY", "Detector", "build_detector"]


@runtime_checkable
class Detector(Protocol):
    """
    Protocol for detection algorithms.

    Implementations keep their own learned state (background models) and
    treat the frame history as read-only.
    """

    algorithm: MotionAlgorithm
    frames_required: int  # Frames needed before detection can run

    def detect(
        self, history: Sequence[np.ndarray], timestamp: int
    ) -> list[MotionRegion]:
        """
        Detect candidate regions in the newest frame.

        Args:
            history: Grayscale float32 frames, oldest first, newest last
            timestamp: Newest frame's timestamp in milliseconds

        Returns:
            Candidate regions (merging and final filtering happen downstream)
        """
        ...

    def update_settings(self, settings) -> None:
        """Apply new tuning without discarding learned state."""
        ...

    def reset(self) -> None:
        """Drop learned state."""
        ...

    def close(self) -> None:
        """Release resources such as worker threads."""
        ...
