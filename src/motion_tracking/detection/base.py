"""
Base class for detectors that produce a binary change mask.

Subclasses implement only the mask computation; labeling and size
limits and the region filter are shared.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from ..models import MotionAlgorithm, MotionRegion
from ..regions import extract_regions, filter_regions

if TYPE_CHECKING:
    from ..config.schemas import MotionDetectionSettings


class BaseMaskDetector(ABC):
    """Mask -> connected components -> regions."""

    algorithm: MotionAlgorithm
    frames_required = 1
    region_prefix = "region"

    def __init__(self, settings: "MotionDetectionSettings"):
        self.settings = settings

    def update_settings(self, settings: "MotionDetectionSettings") -> None:
        """Apply new tuning without discarding learned state."""
        self.settings = settings

    @abstractmethod
    def compute_mask(self, history: Sequence[np.ndarray]) -> np.ndarray | None:
        """
        Compute the change mask for the newest frame.

        Args:
            history: Grayscale float32 frames, oldest first, newest last

        Returns:
            uint8 mask (255 = change), or None when no mask can be produced yet
        """
        ...

    def detect(
        self, history: Sequence[np.ndarray], timestamp: int
    ) -> list[MotionRegion]:
        """Run the detector on the newest frame of history."""
        if len(history) < self.frames_required:
            return []

        mask = self.compute_mask(history)
        if mask is None:
            return []

        kernel = (
            self.settings.morphology_kernel_size
            if self.settings.morphological_ops
            else None
        )
        min_size = self.settings.minimum_object_size
        max_size = self.settings.maximum_object_size
        regions = extract_regions(
            mask,
            timestamp,
            min_size=min_size,
            max_size=max_size,
            morphology_kernel=kernel,
            prefix=self.region_prefix,
        )
        return filter_regions(regions, min_size, max_size)

    def reset(self) -> None:
        """Drop learned state. Stateless detectors have nothing to drop."""

    def close(self) -> None:
        """Release resources. Only detectors owning a worker pool need this."""
