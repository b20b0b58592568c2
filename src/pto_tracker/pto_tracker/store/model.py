from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional


class _ServerTimestamp:
    """Placeholder resolved to the store clock when a document is written."""

    _instance: Optional["_ServerTimestamp"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class CollectionScope:
    """Where a collection lives: organization-wide, or under one employee."""

    org_id: str
    collection: str
    employee_id: Optional[str] = None

    @property
    def path(self) -> str:
        if self.employee_id is None:
            return f"orgs/{self.org_id}/public/{self.collection}"
        return f"orgs/{self.org_id}/users/{self.employee_id}/{self.collection}"


@dataclass(frozen=True)
class Document:
    id: str
    scope: CollectionScope
    data: Mapping[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")

    def matches(self, data: Mapping[str, Any]) -> bool:
        if self.field not in data:
            return False
        current = data[self.field]
        if self.op in ("==", "!="):
            return _OPS[self.op](current, self.value)
        if current is None:
            return False
        try:
            return _OPS[self.op](current, self.value)
        except TypeError:
            return False


@dataclass(frozen=True)
class Query:
    """A collection plus conjunctive filters.

    `group=True` covers the collection under every employee of the organization
    (the privileged, organization-wide view of per-employee collections).
    """

    scope: CollectionScope
    filters: tuple[Filter, ...] = ()
    group: bool = False

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        return Query(scope=self.scope, filters=self.filters + (Filter(field_name, op, value),), group=self.group)

    def covers(self, scope: CollectionScope) -> bool:
        if self.group:
            return scope.org_id == self.scope.org_id and scope.collection == self.scope.collection
        return scope == self.scope

    def matches(self, doc: Document) -> bool:
        return self.covers(doc.scope) and all(f.matches(doc.data) for f in self.filters)


@dataclass(frozen=True)
class Snapshot:
    """Complete current result set of a query, stamped with a per-store sequence."""

    query: Query
    documents: tuple[Document, ...] = field(default_factory=tuple)
    sequence: int = 0

    def __len__(self) -> int:
        return len(self.documents)
