"""
Exception types raised inside the engine.

Frame-level errors never escape process_frame; they are caught and
reported through the "error" event instead.
"""


class MotionTrackingError(Exception):
    """Base class for engine errors."""


class FrameError(MotionTrackingError, ValueError):
    """Raised when a frame has an unusable shape or mismatched dimensions."""


class EngineDestroyedError(MotionTrackingError, RuntimeError):
    """Raised when a destroyed engine is used again."""
