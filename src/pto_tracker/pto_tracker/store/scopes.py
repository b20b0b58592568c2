from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import (
    ATTENDANCE_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    PROFILES_COLLECTION,
    PTO_REQUESTS_COLLECTION,
)
from .model import CollectionScope


@dataclass(frozen=True)
class ScopeFactory:
    """Collection scopes for one organization."""

    org_id: str

    def attendance(self, employee_id: str) -> CollectionScope:
        return CollectionScope(self.org_id, ATTENDANCE_COLLECTION, str(employee_id))

    def all_attendance(self) -> CollectionScope:
        # Template scope for organization-wide group queries.
        return CollectionScope(self.org_id, ATTENDANCE_COLLECTION, "*")

    def profiles(self, user_id: str) -> CollectionScope:
        return CollectionScope(self.org_id, PROFILES_COLLECTION, str(user_id))

    def pto_requests(self) -> CollectionScope:
        return CollectionScope(self.org_id, PTO_REQUESTS_COLLECTION)

    def notifications(self) -> CollectionScope:
        return CollectionScope(self.org_id, NOTIFICATIONS_COLLECTION)
