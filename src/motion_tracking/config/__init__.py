"""
Configuration loading and validation.

- load_settings: YAML file + environment overrides -> validated settings
- validate_settings: Validation with errors/warnings (for --validate)

Pydantic schemas provide type-safe validation:
- MotionDetectionSettings: Complete engine settings
"""

from .loader import (
    ConfigValidationError,
    apply_env_overrides,
    load_settings,
    print_validation_result,
    read_config_file,
)
from .schemas import MotionDetectionSettings, OpticalFlowSettings, TrackingSettings
from .validator import (
    ValidationResult,
    format_validation_errors,
    frame_history_size,
    validate_settings,
)

__all__ = [
    # Exception
    "ConfigValidationError",
    # Pydantic validation
    "MotionDetectionSettings",
    "OpticalFlowSettings",
    "TrackingSettings",
    "ValidationResult",
    # Loading
    "apply_env_overrides",
    "format_validation_errors",
    "frame_history_size",
    "load_settings",
    "print_validation_result",
    "read_config_file",
    "validate_settings",
]
