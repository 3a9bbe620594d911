"""
Motion Detection Engine - per-stream detection, tracking and analysis.

One engine processes one stream of timestamped frames:

    frame -> grayscale (+ optional blur) -> detector -> merge/filter
          -> tracker update -> pattern analysis -> MotionEvent

process_frame is synchronous. Results are returned and also published
on the engine's event bus; per-frame failures are reported as error
events instead of being raised.
"""

import logging
import statistics
import time
import uuid
from collections import deque
from typing import Any

import numpy as np
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from .analysis import PatternAnalyzer
from .config import MotionDetectionSettings, format_validation_errors, frame_history_size
from .detection import build_detector
from .events import (
    CONTEXT_FRAME_PROCESSING,
    CONTEXT_SETTINGS_UPDATE,
    EVENT_DETECTION_RESET,
    EVENT_DETECTION_STARTED,
    EVENT_DETECTION_STOPPED,
    EVENT_ERROR,
    EVENT_MOTION_DETECTED,
    EVENT_SETTINGS_UPDATED,
    EVENT_TRACKING_UPDATE,
    EventBus,
    Listener,
)
from .models import Frame, MotionEvent, MotionRegion, TrackingState, to_grayscale
from .regions import filter_regions, merge_regions, reduce_noise
from .tracking import Associator, TrackerManager
from .utils.constants import CONSISTENCY_BONUS_WEIGHT, STATUS_REPORT_INTERVAL
from .utils.errors import EngineDestroyedError, FrameError, MotionTrackingError

logger = logging.getLogger(__name__)


def overall_confidence(regions: list[MotionRegion]) -> float:
    """
    Mean region confidence plus a velocity-consistency bonus, capped at 1.

    The bonus is max(0, 1 - cv) * 0.2 where cv is the coefficient of
    variation of region speeds. A single region gets no bonus.
    """
    if not regions:
        return 0.0

    confidence = sum(r.confidence for r in regions) / len(regions)

    if len(regions) > 1:
        magnitudes = [r.velocity.magnitude for r in regions]
        mean = statistics.fmean(magnitudes)
        cv = statistics.pstdev(magnitudes) / mean if mean > 0 else 0.0
        confidence += max(0.0, 1.0 - cv) * CONSISTENCY_BONUS_WEIGHT

    return min(1.0, confidence)


def _camel_keys(changes: dict[str, Any]) -> dict[str, Any]:
    """Normalise setting names (snake or camel case) to their camelCase aliases."""
    normalised = {}
    for key, value in changes.items():
        if isinstance(value, BaseModel):
            value = value.model_dump(by_alias=True)
        if isinstance(value, dict):
            value = _camel_keys(value)
        normalised[to_camel(key) if "_" in key else key] = value
    return normalised


def _merge_settings(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Overlay changes on current, merging nested sections key by key."""
    merged = dict(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


class MotionDetectionEngine:
    """
    Motion detection and multi-target tracking for one frame stream.

    Args:
        settings: Engine settings (defaults when omitted)
        associator: Region-to-tracker matching strategy override

    Example:
        engine = MotionDetectionEngine(load_settings("motion.yaml"))
        engine.on("motion-detected", lambda payload: print(payload["event"].id))
        engine.start()
        engine.process_frame(frame, timestamp_ms)
    """

    def __init__(
        self,
        settings: MotionDetectionSettings | None = None,
        associator: Associator | None = None,
    ):
        self._settings = settings or MotionDetectionSettings()
        self._events = EventBus()

        self._detector = build_detector(self._settings)
        self._history: deque[np.ndarray] = deque(
            maxlen=frame_history_size(self._settings.algorithm)
        )
        self._tracker = TrackerManager.from_settings(self._settings.tracking)
        if associator is not None:
            self._tracker.associator = associator
        self._analyzer = PatternAnalyzer()

        self._running = False
        self._destroyed = False
        self._frame_shape: tuple[int, int] | None = None
        self._last_timestamp: int | None = None

        # Performance tracking
        self._frame_count = 0
        self._event_count = 0
        self._processing_time_ms = 0.0
        self._total_processing_ms = 0.0

        logger.info(f"Motion engine initialized: {self._settings.algorithm.value}")

    # --- Events ---

    def on(self, event: str, listener: Listener) -> None:
        self._events.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self._events.off(event, listener)

    # --- Lifecycle ---

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def processing_time_ms(self) -> float:
        """Wall time spent on the most recent frame."""
        return self._processing_time_ms

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def event_count(self) -> int:
        return self._event_count

    @property
    def average_processing_time_ms(self) -> float:
        return self._total_processing_ms / self._frame_count if self._frame_count else 0.0

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise EngineDestroyedError("Engine has been destroyed")

    def start(self) -> None:
        """Begin accepting frames. The session frame counter restarts at zero."""
        self._ensure_alive()
        if self._running:
            return
        self._running = True
        self._frame_count = 0
        self._total_processing_ms = 0.0
        logger.info(f"Motion detection started ({self._settings.algorithm.value})")
        self._events.emit(EVENT_DETECTION_STARTED)

    def stop(self) -> None:
        """Stop accepting frames. Learned state is kept."""
        if not self._running:
            return
        self._running = False
        logger.info(
            f"Motion detection stopped | Frames: {self._frame_count} | "
            f"Events: {self._event_count}"
        )
        self._events.emit(EVENT_DETECTION_STOPPED)

    def reset(self) -> None:
        """Drop background models, frame history, trackers and pattern memory."""
        self._detector.reset()
        self._history.clear()
        self._frame_shape = None
        self._last_timestamp = None
        self._tracker.reset()
        self._analyzer.reset()
        self._frame_count = 0
        self._event_count = 0
        self._total_processing_ms = 0.0
        logger.info("Motion detection reset")
        self._events.emit(EVENT_DETECTION_RESET)

    def destroy(self) -> None:
        """Stop, release the detector and drop all listeners. Terminal."""
        if self._destroyed:
            return
        self.stop()
        self._detector.close()
        self._events.remove_all_listeners()
        self._destroyed = True
        logger.debug("Motion engine destroyed")

    # --- Settings ---

    def get_settings(self) -> MotionDetectionSettings:
        return self._settings.model_copy(deep=True)

    def update_settings(self, **changes) -> bool:
        """
        Validate and apply setting changes.

        Keys may be snake_case or camelCase; nested sections (optical_flow,
        tracking) merge key by key. A changed algorithm or optical-flow
        section rebuilds the detector, discarding background models and
        frame history.

        Returns:
            True if applied. Invalid changes emit an error event and leave
            the current settings in place.
        """
        self._ensure_alive()
        current = self._settings.model_dump(by_alias=True)
        merged = _merge_settings(current, _camel_keys(changes))

        try:
            new_settings = MotionDetectionSettings.model_validate(merged)
        except ValidationError as e:
            errors = format_validation_errors(e)
            logger.warning(f"Rejected settings update: {'; '.join(errors)}")
            self._events.emit(
                EVENT_ERROR,
                {
                    "error": MotionTrackingError(f"Invalid settings: {'; '.join(errors)}"),
                    "context": CONTEXT_SETTINGS_UPDATE,
                },
            )
            return False

        previous = self._settings
        self._settings = new_settings

        if (
            new_settings.algorithm != previous.algorithm
            or new_settings.optical_flow != previous.optical_flow
        ):
            self._rebuild_detector()
        else:
            self._detector.update_settings(new_settings)

        self._tracker.configure(new_settings.tracking)

        logger.info(f"Settings updated: {', '.join(sorted(changes)) or 'no changes'}")
        self._events.emit(EVENT_SETTINGS_UPDATED, {"settings": self.get_settings()})
        return True

    def _rebuild_detector(self) -> None:
        self._detector.close()
        self._detector = build_detector(self._settings)
        self._history = deque(maxlen=frame_history_size(self._settings.algorithm))
        self._frame_shape = None
        logger.info(f"Detector switched to {self._settings.algorithm.value}")

    # --- Tracking ---

    def get_tracking_state(self) -> TrackingState:
        return self._tracker.snapshot()

    # --- Frames ---

    def process_frame(
        self, frame: Frame | np.ndarray, timestamp: int | None = None
    ) -> MotionEvent | None:
        """
        Process one frame.

        Args:
            frame: A Frame, or a raw pixel buffer with a separate timestamp
            timestamp: Milliseconds; required for raw buffers, overrides
                       Frame.timestamp when given

        Returns:
            MotionEvent when motion survives filtering, else None. Also None
            when the engine is stopped or the frame fails (see error events).

        Raises:
            EngineDestroyedError: If called after destroy()
        """
        self._ensure_alive()
        if not self._running:
            return None

        if isinstance(frame, Frame):
            pixels = frame.pixels
            timestamp = frame.timestamp if timestamp is None else timestamp
        else:
            pixels = frame
        if timestamp is None:
            timestamp = int(time.time() * 1000)

        started = time.perf_counter()
        try:
            event = self._process(pixels, int(timestamp))
        except Exception as e:
            logger.error(f"Frame processing failed: {e}", exc_info=True)
            self._events.emit(EVENT_ERROR, {"error": e, "context": CONTEXT_FRAME_PROCESSING})
            return None
        finally:
            self._processing_time_ms = (time.perf_counter() - started) * 1000

        self._total_processing_ms += self._processing_time_ms
        if self._frame_count and self._frame_count % STATUS_REPORT_INTERVAL == 0:
            self._log_status()

        return event

    def _process(self, pixels: np.ndarray, timestamp: int) -> MotionEvent | None:
        gray = to_grayscale(pixels)

        if self._frame_shape is not None and gray.shape != self._frame_shape:
            raise FrameError(
                f"Frame size {gray.shape[1]}x{gray.shape[0]} does not match session "
                f"size {self._frame_shape[1]}x{self._frame_shape[0]}"
            )

        if self._settings.noise_reduction:
            gray = reduce_noise(gray, self._settings.noise_sigma)

        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            logger.warning(
                f"Late frame: timestamp {timestamp} is behind {self._last_timestamp}"
            )

        # Session state only takes the frame once detection succeeds
        window = (*self._history, gray)[-self._history.maxlen :]
        candidates = self._detector.detect(window, timestamp)
        self._history.append(gray)
        self._frame_shape = gray.shape
        self._frame_count += 1
        if self._last_timestamp is None or timestamp > self._last_timestamp:
            self._last_timestamp = timestamp

        # Detectors filter their own regions; merged regions are checked again
        regions = filter_regions(
            merge_regions(candidates),
            self._settings.minimum_object_size,
            self._settings.maximum_object_size,
        )
        if not regions:
            return None

        self._tracker.update(regions, timestamp)
        if self._events.listener_count(EVENT_TRACKING_UPDATE):
            self._events.emit(EVENT_TRACKING_UPDATE, {"state": self._tracker.snapshot()})

        analysis = self._analyzer.analyze(regions, timestamp, self._frame_count)

        event = MotionEvent(
            id=f"motion_{timestamp}_{uuid.uuid4().hex[:9]}",
            timestamp=timestamp,
            regions=regions,
            algorithm=self._settings.algorithm,
            confidence=overall_confidence(regions),
            analysis=analysis,
        )
        self._event_count += 1
        self._events.emit(EVENT_MOTION_DETECTED, {"event": event})
        return event

    def _log_status(self) -> None:
        logger.info(
            f"Frame {self._frame_count} | Avg processing: "
            f"{self.average_processing_time_ms:.1f}ms | Events: {self._event_count} | "
            f"Trackers: {len(self._tracker.active_trackers)}"
        )
