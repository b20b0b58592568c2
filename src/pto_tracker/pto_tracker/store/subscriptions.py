from __future__ import annotations

import logging
import threading
from typing import Optional

from ..core.exceptions import DomainError
from .model import CollectionScope, Query, Snapshot
from .repository import ErrorHandler, SnapshotHandler

logger = logging.getLogger(__name__)


class RegisteredSubscription:
    """One listener on one query.

    Deliveries are serialized per subscription; once `unsubscribe()` returns no
    further callback is made.
    """

    def __init__(
        self,
        registry: "SubscriptionRegistry",
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandler],
        cancel: Optional[threading.Event],
    ):
        self._registry = registry
        self.query = query
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._cancel = cancel
        self._lock = threading.RLock()
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed and not (self._cancel is not None and self._cancel.is_set())

    def unsubscribe(self) -> None:
        with self._lock:
            self._closed = True
        self._registry.remove(self)

    def deliver(self, snapshot: Snapshot) -> None:
        with self._lock:
            if not self._check_open():
                return
            try:
                self._on_snapshot(snapshot)
            except Exception:
                logger.exception("Snapshot handler failed for %s", self.query.scope.path)

    def fail(self, error: Exception) -> None:
        with self._lock:
            if not self._check_open():
                return
            if self._on_error is None:
                logger.warning("Subscription error on %s: %s", self.query.scope.path, error)
                return
            try:
                self._on_error(error)
            except Exception:
                logger.exception("Error handler failed for %s", self.query.scope.path)

    def _check_open(self) -> bool:
        if self._closed:
            return False
        if self._cancel is not None and self._cancel.is_set():
            self._closed = True
            self._registry.remove(self)
            return False
        return True


class SubscriptionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._subs: list[RegisteredSubscription] = []

    def add(
        self,
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandler],
        cancel: Optional[threading.Event],
    ) -> RegisteredSubscription:
        sub = RegisteredSubscription(self, query, on_snapshot, on_error, cancel)
        with self._lock:
            self._subs.append(sub)
        return sub

    def remove(self, sub: RegisteredSubscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    def affected(self, scope: CollectionScope) -> list[RegisteredSubscription]:
        with self._lock:
            self._prune()
            return [s for s in self._subs if s.query.covers(scope)]

    def all(self) -> list[RegisteredSubscription]:
        with self._lock:
            self._prune()
            return list(self._subs)

    def _prune(self) -> None:
        # Drop subscriptions whose cancel signal was set.
        self._subs = [s for s in self._subs if s.active]

    def __len__(self) -> int:
        with self._lock:
            return len(self._subs)


def dispatch(pending: list[tuple[RegisteredSubscription, object]]) -> None:
    """Deliver computed results outside the store lock.

    Each entry holds either a Snapshot or the DomainError raised while computing it.
    """
    for sub, result in pending:
        if isinstance(result, DomainError):
            sub.fail(result)
        else:
            sub.deliver(result)
