"""
Change events published after confirmed mutations.

The presentation layer subscribes to these instead of being re-rendered
implicitly; it then pulls fresh state with SyncEngine.current_contacts().
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

EVENT_IMPORTED = "imported"
EVENT_GROUP_UPDATED = "group_updated"
EVENT_CONTACT_SAVED = "contact_saved"
EVENT_CONTACT_DELETED = "contact_deleted"
EVENT_CACHE_RESET = "cache_reset"
EVENT_NOTE_APPENDED = "note_appended"
EVENT_NOTE_REPLACED = "note_replaced"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """
    A confirmed mutation.

    Attributes:
        kind: One of the EVENT_* constants
        contact_id: Cache id of the affected contact, None for bulk changes
    """

    kind: str
    contact_id: Optional[str] = None


Listener = Callable[[ChangeEvent], None]


class EventBus:
    """Synchronous fan-out of change events to subscribed callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, event: ChangeEvent) -> None:
        """
        Deliver an event to every listener.

        A listener that raises is logged and skipped; the mutation it reports
        has already been applied.
        """
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Change listener failed for {event.kind}: {e}")
