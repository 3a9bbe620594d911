"""
Background Models - per-pixel statistical estimates of the static scene.

RunningMeanBackground keeps one exponentially-updated mean per pixel.
GaussianBackground keeps a (mean, variance, weight) triple per pixel and
only adapts pixels it classifies as background, so a genuine intruder that
stops moving is never absorbed into the model.

The first frame seen by either model seeds it and yields no foreground.
"""

import logging
from collections.abc import Sequence

import numpy as np

from ..models import MotionAlgorithm
from ..regions import threshold_mask
from ..utils.constants import (
    GMM_INITIAL_VARIANCE,
    GMM_INITIAL_WEIGHT,
    GMM_MAHALANOBIS_THRESHOLD,
    GMM_VARIANCE_FLOOR,
)
from .base import BaseMaskDetector
from .registry import register

logger = logging.getLogger(__name__)


class RunningMeanBackground:
    """Per-pixel running mean: mean' = (1 - a) * mean + a * pixel."""

    def __init__(self):
        self.mean: np.ndarray | None = None

    @property
    def is_seeded(self) -> bool:
        return self.mean is not None

    def seed(self, frame: np.ndarray) -> None:
        self.mean = frame.astype(np.float32, copy=True)

    def update(self, frame: np.ndarray, learning_rate: float) -> None:
        """Blend the frame into the model in place."""
        self.mean *= 1.0 - learning_rate
        self.mean += learning_rate * frame

    def foreground_mask(
        self, frame: np.ndarray, learning_rate: float, threshold: float
    ) -> np.ndarray | None:
        """
        Update the model with the frame, then threshold |frame - mean|.

        Returns None on the seeding frame.
        """
        if not self.is_seeded:
            self.seed(frame)
            return None

        self.update(frame, learning_rate)
        return threshold_mask(np.abs(frame - self.mean), threshold)

    def reset(self) -> None:
        self.mean = None


class GaussianBackground:
    """Single Gaussian per pixel with Mahalanobis-distance foreground test."""

    def __init__(self):
        self.mean: np.ndarray | None = None
        self.variance: np.ndarray | None = None
        self.weight: np.ndarray | None = None

    @property
    def is_seeded(self) -> bool:
        return self.mean is not None

    def seed(self, frame: np.ndarray) -> None:
        self.mean = frame.astype(np.float32, copy=True)
        self.variance = np.full(frame.shape, GMM_INITIAL_VARIANCE, dtype=np.float32)
        self.weight = np.full(frame.shape, GMM_INITIAL_WEIGHT, dtype=np.float32)

    def foreground_mask(
        self, frame: np.ndarray, learning_rate: float
    ) -> np.ndarray | None:
        """
        Classify pixels and adapt the background pixels.

        Returns None on the seeding frame.
        """
        if not self.is_seeded:
            self.seed(frame)
            return None

        deviation = frame - self.mean
        distance = np.abs(deviation) / np.sqrt(self.variance)
        foreground = distance > GMM_MAHALANOBIS_THRESHOLD
        background = ~foreground

        # Variance uses the pre-update mean
        new_mean = (1.0 - learning_rate) * self.mean + learning_rate * frame
        new_variance = np.maximum(
            GMM_VARIANCE_FLOOR,
            (1.0 - learning_rate) * self.variance + learning_rate * deviation**2,
        )
        self.mean[background] = new_mean[background]
        self.variance[background] = new_variance[background]

        return np.where(foreground, 255, 0).astype(np.uint8)

    def reset(self) -> None:
        self.mean = None
        self.variance = None
        self.weight = None


@register(MotionAlgorithm.BACKGROUND_SUBTRACTION)
class BackgroundSubtractionDetector(BaseMaskDetector):
    """Running-mean background subtraction."""

    algorithm = MotionAlgorithm.BACKGROUND_SUBTRACTION
    frames_required = 1
    region_prefix = "bgsub"

    def __init__(self, settings):
        super().__init__(settings)
        self.model = RunningMeanBackground()
        logger.debug("Initializing background subtraction model")

    def compute_mask(self, history: Sequence[np.ndarray]) -> np.ndarray | None:
        return self.model.foreground_mask(
            history[-1],
            self.settings.background_learning_rate,
            self.settings.threshold,
        )

    def reset(self) -> None:
        self.model.reset()


@register(MotionAlgorithm.GAUSSIAN_MIXTURE)
class GaussianMixtureDetector(BaseMaskDetector):
    """Per-pixel Gaussian foreground segmentation."""

    algorithm = MotionAlgorithm.GAUSSIAN_MIXTURE
    frames_required = 1
    region_prefix = "gmm"

    def __init__(self, settings):
        super().__init__(settings)
        self.model = GaussianBackground()
        logger.debug("Initializing Gaussian mixture model")

    def compute_mask(self, history: Sequence[np.ndarray]) -> np.ndarray | None:
        return self.model.foreground_mask(
            history[-1], self.settings.background_learning_rate
        )

    def reset(self) -> None:
        self.model.reset()
