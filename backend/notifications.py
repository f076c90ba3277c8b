"""Transient user-visible notices.

Pages read pending notices once and then they are gone.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from threading import Lock

import config

SUCCESS = "success"
ERROR = "error"
INFO = "info"


@dataclass(frozen=True, slots=True)
class Notice:
    level: str
    message: str


@dataclass
class Notifier:
    notices: list[Notice] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.notices.append(Notice(SUCCESS, message))

    def error(self, message: str) -> None:
        self.notices.append(Notice(ERROR, message))

    def info(self, message: str) -> None:
        self.notices.append(Notice(INFO, message))

    def drain(self) -> list[Notice]:
        pending, self.notices = self.notices, []
        return pending

    @property
    def messages(self) -> list[str]:
        return [n.message for n in self.notices]


class FlashBox:
    """Notices parked across a redirect, keyed by auth session token."""

    def __init__(self, capacity: int | None = None) -> None:
        self.capacity = capacity or config.SESSION_CACHE_SIZE
        self._pending: OrderedDict[str, list[Notice]] = OrderedDict()
        self._lock = Lock()

    def push(self, key: str, notices: list[Notice]) -> None:
        if not notices:
            return
        with self._lock:
            self._pending.setdefault(key, []).extend(notices)
            self._pending.move_to_end(key)
            while len(self._pending) > self.capacity:
                self._pending.popitem(last=False)

    def pop(self, key: str) -> list[Notice]:
        with self._lock:
            return self._pending.pop(key, [])

    def __len__(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()
