"""
Utility modules for constants and errors.
"""

from .constants import (
    ENV_ALGORITHM,
    ENV_THRESHOLD,
    STATUS_REPORT_INTERVAL,
)
from .errors import EngineDestroyedError, FrameError, MotionTrackingError

__all__ = [
    "ENV_ALGORITHM",
    "ENV_THRESHOLD",
    "STATUS_REPORT_INTERVAL",
    # Errors
    "EngineDestroyedError",
    "FrameError",
    "MotionTrackingError",
]
