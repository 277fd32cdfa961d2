"""Table change notifications."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

ALL_TABLES = "*"


@dataclass(frozen=True)
class ChangeEvent:
    """Something changed in ``table``. Row contents are deliberately absent."""

    table: str
    action: str = "*"


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(self, feed: ChangeFeed, table: str, callback: ChangeCallback) -> None:
        self._feed = feed
        self.table = table
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)


class ChangeFeed:
    """Per-table observer channel; safe to publish from worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(self, table, callback)
        with self._lock:
            self._subscriptions.setdefault(table, []).append(subscription)
        return subscription

    def publish(self, table: str, action: str = "*") -> None:
        event = ChangeEvent(table=table, action=action)
        with self._lock:
            targets = [*self._subscriptions.get(table, []), *self._subscriptions.get(ALL_TABLES, [])]
        logger.debug("change_published table=%s action=%s subscribers=%d", table, action, len(targets))
        for subscription in targets:
            try:
                subscription.callback(event)
            except Exception:
                logger.exception("change_subscriber_failed table=%s", table)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.table, [])
            if subscription in subscriptions:
                subscriptions.remove(subscription)
