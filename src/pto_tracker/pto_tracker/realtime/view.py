from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

from ..core.exceptions import DomainError
from ..store.model import Document, Query, Snapshot
from ..store.repository import RecordStore, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ViewState:
    loaded: bool = False
    degraded: bool = False
    error: Optional[str] = None
    last_sequence: int = 0


class MaterializedView(Generic[T]):
    """Client-held copy of one query's result set.

    Every snapshot replaces the whole membership, so applying the same snapshot
    twice is a no-op. Snapshots older than the last applied one are dropped.
    Errors flag the view as degraded but keep the last good items.
    """

    def __init__(
        self,
        name: str,
        query: Query,
        mapper: Callable[[Document], T],
        *,
        sort_key: Callable[[T], Any],
        id_of: Callable[[T], str],
        descending: bool = False,
    ):
        self.name = name
        self.query = query
        self._mapper = mapper
        self._sort_key = sort_key
        self._id_of = id_of
        self._descending = descending
        self._lock = threading.RLock()
        self._items: tuple[T, ...] = ()
        self._state = ViewState()
        self._listeners: list[Callable[["MaterializedView[T]"], None]] = []
        self._subscription: Optional[Subscription] = None

    @property
    def items(self) -> tuple[T, ...]:
        return self._items

    @property
    def state(self) -> ViewState:
        return self._state

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def find(self, item_id: str) -> Optional[T]:
        for item in self._items:
            if self._id_of(item) == item_id:
                return item
        return None

    def add_listener(self, listener: Callable[["MaterializedView[T]"], None]) -> None:
        self._listeners.append(listener)

    # -------- Reconciliation --------
    def apply_snapshot(self, snapshot: Snapshot) -> bool:
        """Replace the membership with the snapshot's. Returns True if anything changed."""

        with self._lock:
            if snapshot.sequence < self._state.last_sequence:
                logger.debug("View %s dropped stale snapshot %s", self.name, snapshot.sequence)
                return False

            items = self._materialize(snapshot.documents)
            changed = items != self._items or self._state.degraded or not self._state.loaded
            self._items = items
            self._state = ViewState(loaded=True, degraded=False, error=None, last_sequence=snapshot.sequence)

        if changed:
            self._notify()
        return changed

    def apply_error(self, error: Exception) -> None:
        logger.warning("View %s degraded: %s", self.name, error)
        with self._lock:
            self._state = replace(self._state, degraded=True, error=str(error) or type(error).__name__)
        self._notify()

    def _materialize(self, documents) -> tuple[T, ...]:
        items: list[T] = []
        for doc in documents:
            try:
                items.append(self._mapper(doc))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("View %s skipped malformed document %s: %s", self.name, doc.id, e)
        items.sort(key=lambda i: (self._sort_key(i), self._id_of(i)), reverse=self._descending)
        return tuple(items)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Listener failed for view %s", self.name)

    # -------- Subscription lifecycle --------
    @property
    def attached(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def attach(self, store: RecordStore, *, cancel: Optional[threading.Event] = None) -> None:
        if self._subscription is not None:
            return
        try:
            self._subscription = store.subscribe(self.query, self.apply_snapshot, self.apply_error, cancel=cancel)
        except DomainError as e:
            self.apply_error(e)

    def release(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is not None:
            sub.unsubscribe()
