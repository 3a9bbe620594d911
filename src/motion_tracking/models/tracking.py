"""
Tracking data models - trackers, their history and predictions.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum

from .motion import BoundingBox, MotionVector


class TrackerStatus(str, Enum):
    """Lifecycle of a tracker."""

    CREATED = "created"  # Spawned from an unmatched region
    TRACKING = "tracking"  # Matched at least once since creation
    LOST = "lost"  # Unseen beyond the lost-track age
    RETIRED = "retired"  # Removed from the active set


@dataclass
class ObjectTracker:
    """
    Persistent identity for one moving object.

    Attributes:
        id: Tracker identifier
        position: Current (x, y) center
        velocity: Pixels per second
        acceleration: (x, y) pixels per second squared
        bbox: Last matched bounding box
        confidence: Confidence of the last matched region
        age: Number of frames the tracker has been observed
        last_seen: Timestamp (ms) of the last match, never decreases
        predicted_path: Predicted (x, y) points, one per horizon
        status: Lifecycle state
    """

    id: str
    position: tuple[float, float]
    velocity: MotionVector
    bbox: BoundingBox
    confidence: float
    last_seen: int
    acceleration: tuple[float, float] = (0.0, 0.0)
    age: int = 1
    predicted_path: list[tuple[float, float]] = field(default_factory=list)
    status: TrackerStatus = TrackerStatus.CREATED


@dataclass
class TrackingHistory:
    """Position/velocity record for one tracker. Outlives the tracker."""

    tracker_id: str
    positions: list[tuple[float, float, int]] = field(default_factory=list)
    velocities: list[MotionVector] = field(default_factory=list)
    events: list[str] = field(default_factory=list)

    def append(
        self,
        position: tuple[float, float],
        velocity: MotionVector,
        timestamp: int,
        limit: int,
    ) -> None:
        """Record a sample, dropping the oldest half once over the limit."""
        self.positions.append((position[0], position[1], timestamp))
        self.velocities.append(velocity)

        if len(self.positions) > limit:
            drop = limit // 2
            del self.positions[:drop]
            del self.velocities[:drop]


@dataclass(frozen=True)
class MotionPrediction:
    """Linear extrapolation of a tracker's position."""

    tracker_id: str
    predicted_position: tuple[float, float]
    confidence: float
    time_horizon: float  # seconds


@dataclass
class TrackingState:
    """Snapshot of tracker state handed to callers."""

    active_trackers: dict[str, ObjectTracker] = field(default_factory=dict)
    tracking_history: list[TrackingHistory] = field(default_factory=list)
    predictions: list[MotionPrediction] = field(default_factory=list)
    lost_tracks: list[str] = field(default_factory=list)
    tracking_quality: float = 0.0

    def copy(self) -> "TrackingState":
        """Deep copy so callers cannot mutate engine-owned state."""
        return copy.deepcopy(self)
