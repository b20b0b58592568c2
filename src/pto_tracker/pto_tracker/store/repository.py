from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from .model import CollectionScope, Document, Query, Snapshot

SnapshotHandler = Callable[[Snapshot], None]
ErrorHandler = Callable[[Exception], None]


class Subscription(Protocol):
    @property
    def active(self) -> bool:
        raise NotImplementedError

    def unsubscribe(self) -> None:
        """Stop emitting. Idempotent; no callback runs after this returns."""

        raise NotImplementedError


class RecordStore(Protocol):
    """Document store with push-based change notification."""

    def create(
        self,
        scope: CollectionScope,
        document: Mapping[str, Any],
        *,
        doc_id: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        raise NotImplementedError

    def update(
        self,
        scope: CollectionScope,
        doc_id: str,
        fields: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        raise NotImplementedError

    def get(
        self,
        scope: CollectionScope,
        doc_id: str,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[Document]:
        raise NotImplementedError

    def list(self, query: Query, *, cancel: Optional[threading.Event] = None) -> Sequence[Document]:
        raise NotImplementedError

    def subscribe(
        self,
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandler] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Subscription:
        raise NotImplementedError
