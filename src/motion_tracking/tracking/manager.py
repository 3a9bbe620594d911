"""
Tracker Manager - persistent identities across frames.

Each frame's regions are associated with existing trackers. Matched
trackers update their kinematics and predictions, unmatched regions spawn
new trackers, and trackers unseen for longer than the lost-track age are
retired exactly once.
"""

import logging
from collections import deque

from ..models import (
    MotionPrediction,
    MotionRegion,
    MotionVector,
    ObjectTracker,
    TrackerStatus,
    TrackingHistory,
    TrackingState,
)
from ..utils.constants import (
    LOST_TRACKS_LIMIT,
    PREDICTION_CONFIDENCE_DECAY,
    PREDICTION_CONFIDENCE_FLOOR,
    TRACKING_HISTORY_LIMIT,
)
from .associator import Associator, GreedyNearestNeighborAssociator

logger = logging.getLogger(__name__)


class TrackerManager:
    """
    Owns all trackers, their histories and predictions for one stream.

    Args:
        lost_track_age_ms: Unseen time after which a tracker is retired
        prediction_horizons: Seconds ahead to extrapolate matched trackers
        associator: Matching strategy (greedy nearest neighbour by default)
    """

    def __init__(
        self,
        lost_track_age_ms: int = 5000,
        prediction_horizons: list[float] | None = None,
        associator: Associator | None = None,
    ):
        self.lost_track_age_ms = lost_track_age_ms
        self.prediction_horizons = prediction_horizons or [0.5, 1.0, 2.0]
        self.associator = associator or GreedyNearestNeighborAssociator()

        self._trackers: dict[str, ObjectTracker] = {}
        self._histories: dict[str, TrackingHistory] = {}
        self._predictions: dict[str, list[MotionPrediction]] = {}
        self._lost_tracks: deque[str] = deque(maxlen=LOST_TRACKS_LIMIT)
        self._next_id = 0

    @classmethod
    def from_settings(cls, tracking_settings) -> "TrackerManager":
        """Build from the tracking section of MotionDetectionSettings."""
        return cls(
            lost_track_age_ms=tracking_settings.lost_track_age_ms,
            prediction_horizons=list(tracking_settings.prediction_horizons),
            associator=GreedyNearestNeighborAssociator(
                min_radius=tracking_settings.min_association_radius
            ),
        )

    def configure(self, tracking_settings) -> None:
        """Apply new tracking settings, keeping live trackers."""
        self.lost_track_age_ms = tracking_settings.lost_track_age_ms
        self.prediction_horizons = list(tracking_settings.prediction_horizons)
        if isinstance(self.associator, GreedyNearestNeighborAssociator):
            self.associator.min_radius = tracking_settings.min_association_radius

    @property
    def active_trackers(self) -> dict[str, ObjectTracker]:
        return self._trackers

    @property
    def lost_tracks(self) -> list[str]:
        return list(self._lost_tracks)

    @property
    def predictions(self) -> list[MotionPrediction]:
        return [p for preds in self._predictions.values() for p in preds]

    @property
    def tracking_quality(self) -> float:
        """Mean confidence of active trackers, 0 with none."""
        if not self._trackers:
            return 0.0
        return sum(t.confidence for t in self._trackers.values()) / len(self._trackers)

    def history(self, tracker_id: str) -> TrackingHistory | None:
        return self._histories.get(tracker_id)

    def update(self, regions: list[MotionRegion], timestamp: int) -> None:
        """
        Advance tracking by one frame.

        Args:
            regions: Filtered regions of the current frame
            timestamp: Frame timestamp in milliseconds
        """
        trackers = list(self._trackers.values())
        matches = self.associator.associate(trackers, regions)
        matched_regions = set(matches.values())

        for tracker in trackers:
            if tracker.id in matches:
                self._apply_match(tracker, regions[matches[tracker.id]], timestamp)
            else:
                self._mark_unmatched(tracker, timestamp)

        for index, region in enumerate(regions):
            if index not in matched_regions:
                self._create_tracker(region, timestamp)

    def _apply_match(
        self, tracker: ObjectTracker, region: MotionRegion, timestamp: int
    ) -> None:
        dt = (timestamp - tracker.last_seen) / 1000
        if dt > 0:
            vx = (region.center[0] - tracker.position[0]) / dt
            vy = (region.center[1] - tracker.position[1]) / dt
            previous = tracker.velocity
            tracker.velocity = MotionVector.from_components(
                vx, vy, confidence=region.confidence
            )
            tracker.acceleration = ((vx - previous.x) / dt, (vy - previous.y) / dt)

        tracker.position = region.center
        tracker.bbox = region.bbox
        tracker.confidence = region.confidence
        tracker.last_seen = max(tracker.last_seen, timestamp)
        tracker.age += 1
        tracker.status = TrackerStatus.TRACKING

        self._histories[tracker.id].append(
            tracker.position, tracker.velocity, timestamp, TRACKING_HISTORY_LIMIT
        )
        self._predict(tracker)

    def _predict(self, tracker: ObjectTracker) -> None:
        predictions = []
        for horizon in self.prediction_horizons:
            position = (
                tracker.position[0] + tracker.velocity.x * horizon,
                tracker.position[1] + tracker.velocity.y * horizon,
            )
            confidence = max(
                PREDICTION_CONFIDENCE_FLOOR,
                tracker.confidence - PREDICTION_CONFIDENCE_DECAY * horizon,
            )
            predictions.append(
                MotionPrediction(
                    tracker_id=tracker.id,
                    predicted_position=position,
                    confidence=confidence,
                    time_horizon=horizon,
                )
            )

        self._predictions[tracker.id] = predictions
        tracker.predicted_path = [p.predicted_position for p in predictions]

    def _mark_unmatched(self, tracker: ObjectTracker, timestamp: int) -> None:
        # A brief miss keeps the current status; only an expired tracker is lost
        if timestamp - tracker.last_seen > self.lost_track_age_ms:
            tracker.status = TrackerStatus.LOST
            self._retire(tracker)

    def _retire(self, tracker: ObjectTracker) -> None:
        tracker.status = TrackerStatus.RETIRED
        del self._trackers[tracker.id]
        self._predictions.pop(tracker.id, None)
        self._histories[tracker.id].events.append("retired")

        # Histories of retired trackers live as long as their id stays in the log
        if len(self._lost_tracks) == self._lost_tracks.maxlen:
            self._histories.pop(self._lost_tracks[0], None)
        self._lost_tracks.append(tracker.id)
        logger.debug(f"Retired {tracker.id} after {tracker.age} frames")

    def _create_tracker(self, region: MotionRegion, timestamp: int) -> None:
        self._next_id += 1
        tracker_id = f"tracker_{self._next_id}"

        self._trackers[tracker_id] = ObjectTracker(
            id=tracker_id,
            position=region.center,
            velocity=region.velocity,
            bbox=region.bbox,
            confidence=region.confidence,
            last_seen=timestamp,
        )

        history = TrackingHistory(tracker_id=tracker_id, events=["created"])
        history.append(region.center, region.velocity, timestamp, TRACKING_HISTORY_LIMIT)
        self._histories[tracker_id] = history

    def snapshot(self) -> TrackingState:
        """Copy of the current state, safe to hand to callers."""
        state = TrackingState(
            active_trackers=self._trackers,
            tracking_history=list(self._histories.values()),
            predictions=self.predictions,
            lost_tracks=self.lost_tracks,
            tracking_quality=self.tracking_quality,
        )
        return state.copy()

    def reset(self) -> None:
        """Forget all trackers, histories and predictions."""
        self._trackers.clear()
        self._histories.clear()
        self._predictions.clear()
        self._lost_tracks.clear()
        self._next_id = 0
