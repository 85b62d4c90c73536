"""
Event Emitter
=============

Observer surface through which a run reports progress. Listeners are
plain callables; a failing listener is logged and never interrupts the
run.
"""

from typing import Any, Callable, Dict, List

from funnelsort.utils.logging_config import get_logger

logger = get_logger(__name__)

PROCESSING_START = "processing-start"
FILE_PROCESSING_STATUS = "file-processing-status"
FILE_PROCESSED = "file-processed"
FUNNEL_STATS = "funnel-stats"
FILE_DUPLICATE_DETECTED = "file-duplicate-detected"
LOG_UPDATE = "log-update"
PROCESSING_COMPLETE = "processing-complete"

ALL_EVENTS = (
    PROCESSING_START,
    FILE_PROCESSING_STATUS,
    FILE_PROCESSED,
    FUNNEL_STATS,
    FILE_DUPLICATE_DETECTED,
    LOG_UPDATE,
    PROCESSING_COMPLETE,
)

Listener = Callable[[str, Dict[str, Any]], None]


class EventEmitter:
    """Dispatches named events to registered listeners."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}
        self._any_listeners: List[Listener] = []

    def on(self, event: str, listener: Listener) -> None:
        """Register a listener for one event name.

        Raises:
            ValueError: For unknown event names.
        """
        if event not in ALL_EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._listeners.setdefault(event, []).append(listener)

    def on_any(self, listener: Listener) -> None:
        """Register a listener for every event."""
        self._any_listeners.append(listener)

    def remove_all(self) -> None:
        self._listeners.clear()
        self._any_listeners.clear()

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        """Send an event to its listeners."""
        for listener in self._listeners.get(event, []) + self._any_listeners:
            try:
                listener(event, payload)
            except Exception as e:
                logger.error(f"Listener for {event} failed: {e}", exc_info=True)


class EventRecorder:
    """Listener that keeps every event it receives, in order."""

    def __init__(self):
        self.events: List[tuple] = []

    def __call__(self, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((event, payload))

    def of(self, event: str) -> List[Dict[str, Any]]:
        """Payloads received for one event name."""
        return [payload for name, payload in self.events if name == event]
