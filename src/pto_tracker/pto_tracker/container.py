from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .profiles.service import ProfileService
from .profiles.store_profile_repository import StoreProfileRepository
from .pto.allocation import PtoAllocationService
from .realtime.session import ViewSessionRegistry
from .reports.service import AttendanceReportService
from .store.memory_store import InMemoryRecordStore
from .store.mysql_store import ChangePoller, MySQLRecordStore
from .store.repository import RecordStore
from .store.scopes import ScopeFactory
from .workflow.service import WorkflowService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    store: RecordStore
    scopes: ScopeFactory

    profiles_repo: StoreProfileRepository

    profile_service: ProfileService
    workflow_service: WorkflowService
    allocation_service: PtoAllocationService
    report_service: AttendanceReportService
    view_sessions: ViewSessionRegistry

    poller: Optional[ChangePoller] = None

    def shutdown(self) -> None:
        self.view_sessions.close_all()
        if self.poller is not None:
            self.poller.stop()


def build_store(*, store_backend: str, db_config: Optional[dict] = None) -> RecordStore:
    backend = (store_backend or "memory").lower()
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config or {}))
        logger.info("Using MySQL record store at %s", conn.label)
        return MySQLRecordStore(conn)
    raise ValueError(f"Unknown STORE_BACKEND: {store_backend!r}")


def build_container(
    *,
    org_id: str,
    store_backend: str = "memory",
    db_config: Optional[dict] = None,
    poll_seconds: float = 0,
    session_idle_seconds: float = 0,
    store: Optional[RecordStore] = None,
) -> Container:
    store = store or build_store(store_backend=store_backend, db_config=db_config)
    scopes = ScopeFactory(org_id=str(org_id))

    profiles_repo = StoreProfileRepository(store, scopes)

    poller = None
    if isinstance(store, MySQLRecordStore) and poll_seconds > 0:
        poller = ChangePoller(store, interval_seconds=poll_seconds)
        poller.start()

    return Container(
        store=store,
        scopes=scopes,
        profiles_repo=profiles_repo,
        profile_service=ProfileService(profiles_repo),
        workflow_service=WorkflowService(store, profiles_repo, scopes),
        allocation_service=PtoAllocationService(store, scopes),
        report_service=AttendanceReportService(),
        view_sessions=ViewSessionRegistry(store, scopes, idle_seconds=session_idle_seconds),
        poller=poller,
    )
