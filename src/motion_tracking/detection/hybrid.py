"""
Hybrid and AI-enhanced detectors.

Both run several classical detectors on the same frame, merge their
regions and keep only regions whose combined confidence clears a
consensus floor. This is a voting heuristic; there is no learned model
behind the "AI-enhanced" name.

Constituent detectors own independent state and only read the shared
frame history, so they run concurrently on a small thread pool and are
joined before merging.
"""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from ..models import MotionAlgorithm, MotionRegion
from ..regions import compactness, merge_regions
from ..utils.constants import (
    AI_MIN_COMPACTNESS,
    AI_MIN_VELOCITY,
    CONSENSUS_CONFIDENCE_FLOOR,
)
from .background import BackgroundSubtractionDetector
from .differencing import FrameDifferenceDetector
from .optical_flow import OpticalFlowDetector
from .registry import register

logger = logging.getLogger(__name__)


class CompositeDetector:
    """Fan-out/fan-in over constituent detectors."""

    algorithm: MotionAlgorithm
    constituent_classes: tuple[type, ...] = ()

    def __init__(self, settings):
        self.settings = settings
        self.detectors = [cls(settings) for cls in self.constituent_classes]
        self._executor: ThreadPoolExecutor | None = None
        logger.debug(
            f"Initializing {self.algorithm.value} detection: "
            f"{', '.join(d.algorithm.value for d in self.detectors)}"
        )

    @property
    def frames_required(self) -> int:
        # Each constituent copes with short history itself (bg-sub seeds on frame 1)
        return 1

    def update_settings(self, settings) -> None:
        self.settings = settings
        for detector in self.detectors:
            detector.update_settings(settings)

    def _run_constituents(
        self, history: Sequence[np.ndarray], timestamp: int
    ) -> list[MotionRegion]:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=len(self.detectors),
                thread_name_prefix=f"{self.algorithm.value}-detector",
            )

        futures = [
            self._executor.submit(detector.detect, history, timestamp)
            for detector in self.detectors
        ]

        # Join in constituent order so merging is deterministic
        regions: list[MotionRegion] = []
        for future in futures:
            regions.extend(future.result())
        return regions

    def _consensus(self, regions: list[MotionRegion]) -> list[MotionRegion]:
        return [r for r in regions if r.confidence > CONSENSUS_CONFIDENCE_FLOOR]

    def detect(
        self, history: Sequence[np.ndarray], timestamp: int
    ) -> list[MotionRegion]:
        regions = merge_regions(self._run_constituents(history, timestamp))
        return self._consensus(regions)

    def reset(self) -> None:
        for detector in self.detectors:
            detector.reset()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


@register(MotionAlgorithm.HYBRID)
class HybridDetector(CompositeDetector):
    """Background subtraction + optical flow + frame difference."""

    algorithm = MotionAlgorithm.HYBRID
    constituent_classes = (
        BackgroundSubtractionDetector,
        OpticalFlowDetector,
        FrameDifferenceDetector,
    )


@register(MotionAlgorithm.AI_ENHANCED)
class AIEnhancedDetector(CompositeDetector):
    """
    Optical flow + background subtraction with shape/motion heuristics.

    After merging, regions must be moving (velocity magnitude) and roughly
    compact (bounding-box compactness) before the consensus floor applies.
    """

    algorithm = MotionAlgorithm.AI_ENHANCED
    constituent_classes = (OpticalFlowDetector, BackgroundSubtractionDetector)

    def detect(
        self, history: Sequence[np.ndarray], timestamp: int
    ) -> list[MotionRegion]:
        regions = merge_regions(self._run_constituents(history, timestamp))
        plausible = [
            r
            for r in regions
            if r.velocity.magnitude >= AI_MIN_VELOCITY
            and compactness(r) >= AI_MIN_COMPACTNESS
        ]
        return self._consensus(plausible)
