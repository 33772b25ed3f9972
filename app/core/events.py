"""
Change Notifier

Typed change events for camps and camp selections, delivered to registered
observers after the store commits a write. Observers are expected to
re-fetch state; delivery order across rows is not guaranteed.

Usage:
    notifier = ChangeNotifier()
    notifier.attach(store)

    @notifier.on(CampChanged)
    def refresh_camps(event):
        ...
"""
from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, List, Optional, Type

from app.database.store import CAMPS_TABLE, SELECTIONS_TABLE, CampStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    action: str  # INSERT | UPDATE | DELETE
    record: Dict[str, Any] = field(default_factory=dict)
    old_record: Optional[Dict[str, Any]] = None

    @property
    def current(self) -> Dict[str, Any]:
        """The row after the change, or the removed row for deletes."""
        return self.record or self.old_record or {}

    def to_message(self) -> Dict[str, Any]:
        return {"type": type(self).__name__, "action": self.action, "record": self.current}


@dataclass(frozen=True)
class CampChanged(ChangeEvent):
    @property
    def camp_id(self) -> Optional[str]:
        return self.current.get("id")


@dataclass(frozen=True)
class SelectionChanged(ChangeEvent):
    @property
    def user_id(self) -> Optional[str]:
        return self.current.get("user_id")

    @property
    def camp_id(self) -> Optional[str]:
        return self.current.get("camp_id")


TABLE_EVENTS: Dict[str, Type[ChangeEvent]] = {
    CAMPS_TABLE: CampChanged,
    SELECTIONS_TABLE: SelectionChanged,
}

Observer = Callable[[ChangeEvent], None]


class ChangeNotifier:
    def __init__(self):
        self._handlers: Dict[Type[ChangeEvent], List[Observer]] = {}
        self._detach: List[Callable[[], None]] = []

    def on(self, event_type: Type[ChangeEvent]):
        """Decorator to subscribe to an event type."""
        def decorator(handler: Observer):
            self.subscribe(event_type, handler)
            return handler
        return decorator

    def subscribe(self, event_type: Type[ChangeEvent], handler: Observer) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.__name__}")
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: Type[ChangeEvent], handler: Observer):
        if event_type in self._handlers:
            self._handlers[event_type] = [h for h in self._handlers[event_type] if h != handler]

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to its observers in registration order. Returns the number notified."""
        handlers = []
        for event_type, registered in self._handlers.items():
            if isinstance(event, event_type):
                handlers.extend(registered)

        if not handlers:
            logger.debug(f"No observers for {type(event).__name__}")
            return 0

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Observer {getattr(handler, '__name__', handler)} failed for {type(event).__name__}: {e}")
        return len(handlers)

    def attach(self, store: CampStore) -> None:
        """Relay the store's camp and selection row changes as typed events."""
        for table, event_type in TABLE_EVENTS.items():
            self._detach.append(store.subscribe(table, self._relay(event_type)))

    def detach(self) -> None:
        for unsubscribe in self._detach:
            unsubscribe()
        self._detach.clear()

    def _relay(self, event_type: Type[ChangeEvent]):
        def relay(payload: Dict[str, Any]):
            self.publish(event_type(
                action=payload.get("eventType", "UPDATE"),
                record=payload.get("new") or {},
                old_record=payload.get("old"),
            ))
        relay.__name__ = f"relay_{event_type.__name__}"
        return relay

    def clear(self):
        """Clear all subscriptions (useful for testing)."""
        self._handlers.clear()

    def get_subscriptions(self) -> Dict[str, int]:
        return {event_type.__name__: len(handlers) for event_type, handlers in self._handlers.items()}
