"""
Engine Events - Contract between the engine and its listeners.

The engine publishes everything it produces through a small synchronous
event bus. Listeners run in registration order on the caller's thread,
inside process_frame / start / stop, so they should be quick.

Event Types:
    motion-detected: {"event": MotionEvent}
    tracking-update: {"state": TrackingState}
    settings-updated: {"settings": MotionDetectionSettings}
    detection-started / detection-stopped / detection-reset: {}
    error: {"error": Exception, "context": str}
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Literal

logger = logging.getLogger(__name__)

# Event name constants
EVENT_MOTION_DETECTED = "motion-detected"
EVENT_TRACKING_UPDATE = "tracking-update"
EVENT_SETTINGS_UPDATED = "settings-updated"
EVENT_DETECTION_STARTED = "detection-started"
EVENT_DETECTION_STOPPED = "detection-stopped"
EVENT_DETECTION_RESET = "detection-reset"
EVENT_ERROR = "error"

EventName = Literal[
    "motion-detected",
    "tracking-update",
    "settings-updated",
    "detection-started",
    "detection-stopped",
    "detection-reset",
    "error",
]

# Error contexts
CONTEXT_FRAME_PROCESSING = "frame processing"
CONTEXT_SETTINGS_UPDATE = "settings update"

Listener = Callable[[dict[str, Any]], None]


class EventBus:
    """Named-event publish/subscribe."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        """Register a listener for an event name."""
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, payload: dict[str, Any] | None = None) -> None:
        """
        Deliver payload to every listener of event.

        A failing listener is logged and skipped; it never interrupts the
        engine or the remaining listeners.
        """
        payload = payload if payload is not None else {}
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for '{event}' failed: {e}", exc_info=True)

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Remove listeners for one event, or for all events."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)
