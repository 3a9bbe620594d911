"""
Motion Tracking Engine

Real-time motion detection and multi-target tracking over timestamped
frames. Eight interchangeable detection algorithms feed a shared region
pipeline, a tracker manager with short-horizon prediction, and a pattern
analyzer.

Package structure:
  detection/  - Detection algorithms and registry
  regions/    - Mask labeling, region filtering and merging
  tracking/   - Association, tracker lifecycle, prediction
  analysis/   - Per-frame motion statistics and patterns
  config/     - Settings schemas, loading and validation
  models/     - Data models
  utils/      - Constants and errors
"""

__version__ = "1.0.0"

from .config import (
    ConfigValidationError,
    MotionDetectionSettings,
    ValidationResult,
    load_settings,
    validate_settings,
)
from .engine import MotionDetectionEngine
from .events import EventBus
from .models import (
    Frame,
    MotionAlgorithm,
    MotionEvent,
    MotionRegion,
    TrackingState,
)
from .utils import EngineDestroyedError, FrameError, MotionTrackingError

__all__ = [
    # Config
    "ConfigValidationError",
    # Errors
    "EngineDestroyedError",
    "EventBus",
    "Frame",
    "FrameError",
    "MotionAlgorithm",
    # Engine
    "MotionDetectionEngine",
    "MotionDetectionSettings",
    "MotionEvent",
    "MotionRegion",
    "MotionTrackingError",
    "TrackingState",
    "ValidationResult",
    "load_settings",
    "validate_settings",
]
