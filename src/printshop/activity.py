"""Bounded in-memory log of storefront actions."""

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .logging_utils import get_logger
from .models import _generate_id, _utc_now

logger = get_logger(__name__)

MAX_ENTRIES = 100


class ActionType(str, Enum):
    ADD_TO_CART = "ADD_TO_CART"
    REMOVE_FROM_CART = "REMOVE_FROM_CART"
    UPDATE_CART_QUANTITY = "UPDATE_CART_QUANTITY"
    CHECKOUT_START = "CHECKOUT_START"
    CHECKOUT_COMPLETE = "CHECKOUT_COMPLETE"
    ADMIN_ADD_PRODUCT = "ADMIN_ADD_PRODUCT"
    ADMIN_DELETE_PRODUCT = "ADMIN_DELETE_PRODUCT"


@dataclass(frozen=True)
class LogEntry:
    id: str
    action: ActionType
    timestamp: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action.value,
            "timestamp": self.timestamp,
            "data": dict(self.data),
        }


class ActivityLog:
    """Keeps the newest entries first, dropping the oldest past max_entries."""

    def __init__(self, max_entries: int = MAX_ENTRIES):
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._mutex = threading.Lock()

    def record(self, action: ActionType, **data: Any) -> LogEntry:
        entry = LogEntry(id=_generate_id(), action=action, timestamp=_utc_now(), data=data)
        with self._mutex:
            self._entries.appendleft(entry)
        logger.info("%s %s", action.value, data)
        return entry

    def entries(self) -> list[LogEntry]:
        with self._mutex:
            return list(self._entries)

    def by_action(self, action: ActionType) -> list[LogEntry]:
        return [e for e in self.entries() if e.action == action]

    def recent(self, count: int = 10) -> list[LogEntry]:
        if count <= 0:
            return []
        return self.entries()[:count]

    def clear(self) -> None:
        with self._mutex:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
