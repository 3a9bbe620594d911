"""
Consolidated data models for motion detection and tracking.

This package contains all core data structures used across the engine.
"""

from .frame import Frame, to_grayscale
from .motion import (
    BoundingBox,
    MotionAlgorithm,
    MotionAnalysisResult,
    MotionAnomalies,
    MotionEvent,
    MotionPatterns,
    MotionRegion,
    MotionVector,
    PeriodicPattern,
    VelocityStats,
)
from .tracking import (
    MotionPrediction,
    ObjectTracker,
    TrackerStatus,
    TrackingHistory,
    TrackingState,
)

__all__ = [
    "BoundingBox",
    # Frames
    "Frame",
    "MotionAlgorithm",
    "MotionAnalysisResult",
    "MotionAnomalies",
    "MotionEvent",
    "MotionPatterns",
    # Tracking models
    "MotionPrediction",
    "MotionRegion",
    # Motion models
    "MotionVector",
    "ObjectTracker",
    "PeriodicPattern",
    "TrackerStatus",
    "TrackingHistory",
    "TrackingState",
    "VelocityStats",
    "to_grayscale",
]
