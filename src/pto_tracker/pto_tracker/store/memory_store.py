from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import ConflictError, NotFoundError, OperationCancelledError, PersistenceError
from .model import SERVER_TIMESTAMP, CollectionScope, Document, Query, Snapshot
from .repository import ErrorHandler, RecordStore, SnapshotHandler
from .subscriptions import RegisteredSubscription, SubscriptionRegistry, dispatch


def check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError("Operation cancelled")


class MonotonicClock:
    """Store clock: never returns the same or an earlier instant twice."""

    def __init__(self, clock: Callable[[], datetime] = now_local):
        self._clock = clock
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = self._clock()
            if self._last is not None and now <= self._last:
                now = self._last + timedelta(microseconds=1)
            self._last = now
            return now


def resolve_server_values(fields: Mapping[str, Any], ts: datetime) -> dict[str, Any]:
    return {k: (ts if v is SERVER_TIMESTAMP else v) for k, v in fields.items()}


class InMemoryRecordStore(RecordStore):
    """Thread-safe in-process document store.

    Every create/update re-evaluates the subscriptions covering the written scope
    and pushes each of them its complete current result set.
    """

    def __init__(self, *, clock: Callable[[], datetime] = now_local):
        self._lock = threading.RLock()
        self._collections: dict[CollectionScope, dict[str, dict[str, Any]]] = {}
        self._clock = MonotonicClock(clock)
        self._sequence = 0
        self._subs = SubscriptionRegistry()

    # -------- Writes --------
    def create(
        self,
        scope: CollectionScope,
        document: Mapping[str, Any],
        *,
        doc_id: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        check_cancel(cancel)
        with self._lock:
            docs = self._collections.setdefault(scope, {})
            new_id = doc_id or uuid.uuid4().hex
            if new_id in docs:
                raise PersistenceError(f"Document {new_id} already exists in {scope.path}")
            docs[new_id] = resolve_server_values(document, self._clock())
            pending = self._pending_for(scope)
        dispatch(pending)
        return new_id

    def update(
        self,
        scope: CollectionScope,
        doc_id: str,
        fields: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        check_cancel(cancel)
        with self._lock:
            current = self._collections.get(scope, {}).get(doc_id)
            if current is None:
                raise NotFoundError(f"Document {doc_id} not found in {scope.path}")
            for key, value in (expected or {}).items():
                if current.get(key) != value:
                    raise ConflictError(
                        f"Document {doc_id} changed concurrently: {key} is {current.get(key)!r}, expected {value!r}"
                    )
            current.update(resolve_server_values(fields, self._clock()))
            pending = self._pending_for(scope)
        dispatch(pending)

    # -------- Reads --------
    def get(
        self,
        scope: CollectionScope,
        doc_id: str,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[Document]:
        check_cancel(cancel)
        with self._lock:
            data = self._collections.get(scope, {}).get(doc_id)
            if data is None:
                return None
            return Document(id=doc_id, scope=scope, data=dict(data))

    def list(self, query: Query, *, cancel: Optional[threading.Event] = None) -> Sequence[Document]:
        check_cancel(cancel)
        with self._lock:
            return list(self._run(query))

    # -------- Change notification --------
    def subscribe(
        self,
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandler] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> RegisteredSubscription:
        check_cancel(cancel)
        sub = self._subs.add(query, on_snapshot, on_error, cancel)
        with self._lock:
            initial = self._snapshot(query)
        sub.deliver(initial)
        return sub

    @property
    def subscription_count(self) -> int:
        return len(self._subs)

    def _run(self, query: Query) -> list[Document]:
        out: list[Document] = []
        for scope, docs in self._collections.items():
            if not query.covers(scope):
                continue
            for doc_id, data in docs.items():
                doc = Document(id=doc_id, scope=scope, data=dict(data))
                if query.matches(doc):
                    out.append(doc)
        return out

    def _snapshot(self, query: Query) -> Snapshot:
        self._sequence += 1
        return Snapshot(query=query, documents=tuple(self._run(query)), sequence=self._sequence)

    def _pending_for(self, scope: CollectionScope) -> list[tuple[RegisteredSubscription, object]]:
        return [(sub, self._snapshot(sub.query)) for sub in self._subs.affected(scope)]
