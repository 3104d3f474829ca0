"""
Storage event bus.

Repository services publish an event after an item is created and before an
item is deleted. Handlers run synchronously, in subscription order, on the
thread that performed the storage operation.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from pydantic import BaseModel, Field

from .models import Item

logger = logging.getLogger(__name__)


class StorageEventType(Enum):
    """Storage events the retention triggers can react to."""

    ITEM_CREATED = "item_created"
    BEFORE_DELETE = "before_delete"


class StorageEvent(BaseModel):
    """A storage operation notification."""

    event_id: str = Field(default_factory=lambda: f"event_{uuid.uuid4().hex[:12]}")
    event_type: StorageEventType
    item: Item
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


StorageEventHandler = Callable[[StorageEvent], object]


class StorageEventBus:
    """Dispatches storage events to subscribed handlers."""

    def __init__(self) -> None:
        self._handlers: dict[StorageEventType, list[StorageEventHandler]] = {
            event_type: [] for event_type in StorageEventType
        }
        self._lock = threading.Lock()

    def subscribe(self, event_type: StorageEventType, handler: StorageEventHandler) -> None:
        """Register ``handler`` for ``event_type``."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: StorageEventType, handler: StorageEventHandler) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        with self._lock:
            try:
                self._handlers[event_type].remove(handler)
            except ValueError:
                return False
            return True

    def handlers(self, event_type: StorageEventType) -> list[StorageEventHandler]:
        with self._lock:
            return list(self._handlers[event_type])

    def publish(self, event_type: StorageEventType, item: Item) -> StorageEvent:
        """Build an event for ``item`` and deliver it to every handler."""
        event = StorageEvent(event_type=event_type, item=item)
        logger.debug(
            "Publishing storage event",
            extra={"event": event_type.value, "item": str(item.repo_path)},
        )
        for handler in self.handlers(event_type):
            handler(event)
        return event

    def publish_item_created(self, item: Item) -> StorageEvent:
        return self.publish(StorageEventType.ITEM_CREATED, item)

    def publish_before_delete(self, item: Item) -> StorageEvent:
        return self.publish(StorageEventType.BEFORE_DELETE, item)
