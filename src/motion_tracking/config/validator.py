"""
Configuration Validator - Validates settings syntax and tuning sanity.

Schema errors come from pydantic; warnings flag combinations that are
valid but usually produce no detections or noisy output.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ..models import MotionAlgorithm
from .schemas import MotionDetectionSettings

logger = logging.getLogger(__name__)

# Algorithms that emit optical-flow block regions
_FLOW_ALGORITHMS = {
    MotionAlgorithm.OPTICAL_FLOW,
    MotionAlgorithm.HYBRID,
    MotionAlgorithm.AI_ENHANCED,
}


@dataclass
class ValidationResult:
    """Result of settings validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    derived: dict[str, Any] = field(default_factory=dict)
    settings: MotionDetectionSettings | None = None


def format_validation_errors(error: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into 'path: message' strings."""
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"]) or "settings"
        messages.append(f"{location}: {err['msg']}")
    return messages


def validate_settings(data: dict | None) -> ValidationResult:
    """
    Validate a settings dictionary.

    Args:
        data: Raw settings (e.g. parsed YAML). None means all defaults.

    Returns:
        ValidationResult with errors, warnings, and the parsed settings if valid.
    """
    result = ValidationResult(valid=True)

    try:
        settings = MotionDetectionSettings.model_validate(data or {})
    except ValidationError as e:
        result.valid = False
        result.errors.extend(format_validation_errors(e))
        return result

    result.settings = settings
    _check_tuning(settings, result)

    result.derived["algorithm"] = settings.algorithm.value
    result.derived["frame_history"] = frame_history_size(settings.algorithm)

    return result


def frame_history_size(algorithm: MotionAlgorithm) -> int:
    """Number of frames buffered for an algorithm (current frame included)."""
    return {
        MotionAlgorithm.BACKGROUND_SUBTRACTION: 1,
        MotionAlgorithm.GAUSSIAN_MIXTURE: 1,
        MotionAlgorithm.OPTICAL_FLOW: 2,
        MotionAlgorithm.FRAME_DIFFERENCE: 2,
        MotionAlgorithm.EDGE_BASED: 2,
        MotionAlgorithm.AI_ENHANCED: 2,
        MotionAlgorithm.TEMPORAL_DIFFERENCE: 3,
        MotionAlgorithm.HYBRID: 5,
    }[algorithm]


def _check_tuning(settings: MotionDetectionSettings, result: ValidationResult) -> None:
    """Add warnings for suspicious but valid settings."""
    if settings.algorithm in _FLOW_ALGORITHMS:
        block_area = settings.optical_flow.block_size**2
        if settings.minimum_object_size > block_area:
            result.warnings.append(
                f"minimum_object_size ({settings.minimum_object_size}) exceeds the "
                f"optical flow block area ({block_area}); isolated moving blocks "
                "will be filtered out"
            )

    if settings.background_learning_rate > 0.5:
        result.warnings.append(
            "background_learning_rate > 0.5 absorbs moving objects into the "
            "background within a few frames"
        )

    if settings.threshold < 5:
        result.warnings.append(
            f"threshold {settings.threshold} is below typical sensor noise"
        )

    if (
        settings.morphological_ops
        and settings.morphology_kernel_size**2 > settings.minimum_object_size
    ):
        result.warnings.append(
            "morphology kernel is larger than minimum_object_size; small objects "
            "will be erased by the opening"
        )
