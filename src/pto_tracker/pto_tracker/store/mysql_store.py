from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import now_local
from ..core.exceptions import ConflictError, DomainError, NotFoundError, PersistenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, translate_errors
from .memory_store import MonotonicClock, check_cancel, resolve_server_values
from .model import CollectionScope, Document, Query, Snapshot
from .repository import ErrorHandler, RecordStore, SnapshotHandler
from .subscriptions import RegisteredSubscription, SubscriptionRegistry, dispatch

logger = logging.getLogger(__name__)


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    raise TypeError(f"Unsupported document value type: {type(value)!r}")


def _decode_object(obj: dict) -> Any:
    if len(obj) == 1:
        if "$datetime" in obj:
            return datetime.fromisoformat(obj["$datetime"])
        if "$date" in obj:
            return date.fromisoformat(obj["$date"])
    return obj


def encode_body(data: Mapping[str, Any]) -> str:
    return json.dumps(dict(data), default=_encode_value)


def decode_body(body: Any) -> dict[str, Any]:
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    return json.loads(body, object_hook=_decode_object)


class MySQLRecordStore(RecordStore):
    """Record store on a single MySQL `documents` table.

    Writes made through this instance are pushed to its subscribers right away;
    writes from other processes show up on the next `refresh()` (see ChangePoller).
    """

    def __init__(self, conn_factory: DatabaseConnection, *, clock: Callable[[], datetime] = now_local):
        self._conn_factory = conn_factory
        self._clock = MonotonicClock(clock)
        self._seq_lock = threading.Lock()
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
        new_id = doc_id or uuid.uuid4().hex
        now = self._clock()
        body = encode_body(resolve_server_values(document, now))
        try:
            with translate_errors(), db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO documents(scope_path, doc_id, org_id, collection, employee_id, body, created_at, updated_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (scope.path, new_id, scope.org_id, scope.collection, scope.employee_id, body, now, now),
                )
        except PersistenceError as e:
            if isinstance(e.__cause__, mysql.connector.errors.IntegrityError):
                raise PersistenceError(f"Document {new_id} already exists in {scope.path}") from e
            raise
        self._publish(scope)
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
        now = self._clock()
        with translate_errors(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT body FROM documents WHERE scope_path=%s AND doc_id=%s FOR UPDATE",
                (scope.path, doc_id),
            )
            row = fetchone(cur)
            if not row:
                raise NotFoundError(f"Document {doc_id} not found in {scope.path}")
            current = decode_body(row["body"])
            for key, value in (expected or {}).items():
                if current.get(key) != value:
                    raise ConflictError(
                        f"Document {doc_id} changed concurrently: {key} is {current.get(key)!r}, expected {value!r}"
                    )
            current.update(resolve_server_values(fields, now))
            cur.execute(
                "UPDATE documents SET body=%s, updated_at=%s WHERE scope_path=%s AND doc_id=%s",
                (encode_body(current), now, scope.path, doc_id),
            )
        self._publish(scope)

    # -------- Reads --------
    def get(
        self,
        scope: CollectionScope,
        doc_id: str,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[Document]:
        check_cancel(cancel)
        with translate_errors(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT body FROM documents WHERE scope_path=%s AND doc_id=%s",
                (scope.path, doc_id),
            )
            row = fetchone(cur)
        if not row:
            return None
        return Document(id=doc_id, scope=scope, data=decode_body(row["body"]))

    def list(self, query: Query, *, cancel: Optional[threading.Event] = None) -> Sequence[Document]:
        check_cancel(cancel)
        if query.group:
            where, params = "org_id=%s AND collection=%s", (query.scope.org_id, query.scope.collection)
        else:
            where, params = "scope_path=%s", (query.scope.path,)

        with translate_errors(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT doc_id, org_id, collection, employee_id, body
                FROM documents
                WHERE {where}
                ORDER BY created_at ASC, doc_id ASC
                """,
                params,
            )
            rows = fetchall(cur)

        out: list[Document] = []
        for r in rows:
            scope = CollectionScope(org_id=r["org_id"], collection=r["collection"], employee_id=r.get("employee_id"))
            doc = Document(id=r["doc_id"], scope=scope, data=decode_body(r["body"]))
            if query.matches(doc):
                out.append(doc)
        return out

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
        dispatch([(sub, self._compute(query))])
        return sub

    def refresh(self) -> None:
        """Re-emit every active subscription's current result set."""
        dispatch([(sub, self._compute(sub.query)) for sub in self._subs.all()])

    def _compute(self, query: Query) -> object:
        # Numbered before the read: a read that starts later sees newer rows.
        with self._seq_lock:
            self._sequence += 1
            sequence = self._sequence
        try:
            docs = self.list(query)
        except DomainError as e:
            return e
        return Snapshot(query=query, documents=tuple(docs), sequence=sequence)

    def _publish(self, scope: CollectionScope) -> None:
        dispatch([(sub, self._compute(sub.query)) for sub in self._subs.affected(scope)])


class ChangePoller(threading.Thread):
    """Periodically refreshes a MySQL store so other processes' writes are pushed."""

    def __init__(self, store: MySQLRecordStore, *, interval_seconds: float = 2.0):
        super().__init__(name="pto-tracker-change-poller", daemon=True)
        self._store = store
        self._interval = float(interval_seconds)
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._store.refresh()
            except Exception:
                logger.exception("Change poller refresh failed")

    def stop(self) -> None:
        self._stop_event.set()
