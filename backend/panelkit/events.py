"""
panelkit/events.py

In-process event bus for panel lifecycle events

Events:
    panel.registered  - a panel finished booting (data: panel_id, path, resources)
    panel.serving     - a request entered a panel (data: panel_id, path, method)
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import threading
import uuid

logger = logging.getLogger(__name__)

PANEL_REGISTERED = "panel.registered"
PANEL_SERVING = "panel.serving"

EventHandler = Callable[["Event"], None]


def _generate_event_id() -> str:
    return f"{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}"


@dataclass
class Event:
    """
    Attributes:
        event_type: dotted event name (e.g. "panel.serving")
        data: event payload
        source: emitting component
        timestamp: creation time
        event_id: unique id
    """

    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=_generate_event_id)


@dataclass
class PublishResult:
    event_type: str
    subscriber_count: int
    success_count: int = 0
    failure_count: int = 0
    errors: List[Tuple[Callable, Exception]] = field(default_factory=list)


class EventBus:
    """
    Synchronous publish/subscribe bus

    A failing handler is logged and counted; the remaining handlers still run.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe(PANEL_SERVING, lambda event: print(event.data["panel_id"]))
        >>> bus.publish(Event(event_type=PANEL_SERVING, data={"panel_id": "admin"}))
    """

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._history: deque = deque(maxlen=history_size)
        self._lock = threading.RLock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.info(f"Handler {getattr(handler, '__name__', handler)!s} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: Event) -> PublishResult:
        """Run every handler subscribed to ``event.event_type``"""
        with self._lock:
            self._history.append(event)
            handlers = list(self._subscribers.get(event.event_type, []))

        result = PublishResult(event_type=event.event_type, subscriber_count=len(handlers))

        for handler in handlers:
            try:
                handler(event)
                result.success_count += 1
            except Exception as e:
                result.failure_count += 1
                result.errors.append((handler, e))
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)!s} error for {event.event_type}: {e}",
                    exc_info=True,
                )

        return result

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """Recorded events, newest first"""
        with self._lock:
            history = list(self._history)
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return list(reversed(history))[:limit]

    def get_subscribers(self, event_type: str) -> List[EventHandler]:
        with self._lock:
            return list(self._subscribers.get(event_type, []))

    def clear(self) -> None:
        """Drop subscribers and history (for tests)"""
        with self._lock:
            self._subscribers.clear()
            self._history.clear()


# Process-wide bus
event_bus = EventBus()

__all__ = [
    "PANEL_REGISTERED",
    "PANEL_SERVING",
    "EventHandler",
    "Event",
    "PublishResult",
    "EventBus",
    "event_bus",
]
