"""
Detector Registry - Maps algorithms to detector classes.

Registry is populated by detector modules. The active detector is built
from settings at engine start and rebuilt when the algorithm changes.
"""

import logging
from typing import TYPE_CHECKING

from ..models import MotionAlgorithm

if TYPE_CHECKING:
    from ..config.schemas import MotionDetectionSettings

logger = logging.getLogger(__name__)

# Registry: algorithm -> detector class
DETECTOR_REGISTRY: dict[MotionAlgorithm, type] = {}


def register(algorithm: MotionAlgorithm):
    """Decorator to register a detector class for an algorithm."""

    def decorator(cls):
        DETECTOR_REGISTRY[algorithm] = cls
        return cls

    return decorator


def build_detector(settings: "MotionDetectionSettings"):
    """
    Build the detector selected by settings.algorithm.

    Args:
        settings: Validated engine settings

    Returns:
        Configured detector instance

    Raises:
        KeyError: If no detector is registered for the algorithm
    """
    # Import detectors to populate registry (decorators register on import)
    from . import background, differencing, hybrid, optical_flow  # noqa: F401

    detector_class = DETECTOR_REGISTRY[settings.algorithm]
    detector = detector_class(settings)
    logger.debug(f"Built detector: {detector_class.__name__} -> {settings.algorithm.value}")
    return detector
