from __future__ import annotations

import logging
import threading
import time
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local, week_bounds
from ..common.validators import coerce_enum
from ..core.enums import Role
from ..core.exceptions import NotFoundError, NotReadyError
from ..store.repository import RecordStore
from ..store.scopes import ScopeFactory
from . import queries
from .view import MaterializedView

logger = logging.getLogger(__name__)


class ViewSession:
    """Owns every live view (and so every subscription) of one signed-in identity."""

    def __init__(
        self,
        store: RecordStore,
        scopes: ScopeFactory,
        *,
        today: Callable[[], date] = lambda: now_local().date(),
    ):
        self._store = store
        self._scopes = scopes
        self._today = today
        self._lock = threading.RLock()
        self._identity_id: Optional[str] = None
        self._role: Optional[Role] = None
        self._cancel: Optional[threading.Event] = None
        self._views: dict[str, MaterializedView] = {}
        self._week_start: Optional[datetime] = None

    @property
    def identity_id(self) -> Optional[str]:
        return self._identity_id

    @property
    def role(self) -> Optional[Role]:
        return self._role

    @property
    def views(self) -> dict[str, MaterializedView]:
        return dict(self._views)

    def start(self, identity_id: str, role: Role) -> dict[str, MaterializedView]:
        if not identity_id:
            raise NotReadyError("Not signed in")
        role = coerce_enum(Role, role, "Role")
        with self._lock:
            if self._identity_id == identity_id and self._role == role and self._views:
                self._roll_week()
                return self.views
            # A different identity (or role) must never inherit live listeners.
            self.close()

            self._identity_id = identity_id
            self._role = role
            self._cancel = threading.Event()
            self._week_start = week_bounds(self._today())[0]
            for view in self._build(identity_id, role):
                view.attach(self._store, cancel=self._cancel)
                self._views[view.name] = view
            logger.info("Opened %d views for %s (%s)", len(self._views), identity_id, role.value)
            return self.views

    def view(self, name: str) -> MaterializedView:
        if name == queries.MY_ATTENDANCE_WEEK:
            self._roll_week()
        try:
            return self._views[name]
        except KeyError:
            raise NotFoundError(f"View {name} is not open in this session")

    def close(self) -> None:
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            for view in self._views.values():
                view.release()
            if self._views:
                logger.info("Released %d views for %s", len(self._views), self._identity_id)
            self._views = {}
            self._cancel = None
            self._identity_id = None
            self._role = None
            self._week_start = None

    def _roll_week(self) -> None:
        """Re-target the week view once the current week has moved on."""

        with self._lock:
            old = self._views.get(queries.MY_ATTENDANCE_WEEK)
            if old is None or self._identity_id is None:
                return
            today = self._today()
            week_start = week_bounds(today)[0]
            if week_start == self._week_start:
                return
            old.release()
            fresh = queries.my_attendance_week(self._scopes, self._identity_id, today)
            fresh.attach(self._store, cancel=self._cancel)
            self._views[fresh.name] = fresh
            self._week_start = week_start
            logger.info("Moved %s to the week of %s", fresh.name, week_start.date().isoformat())

    def _build(self, identity_id: str, role: Role) -> list[MaterializedView]:
        if role == Role.MANAGEMENT:
            return [
                queries.all_pto_requests(self._scopes),
                queries.all_notifications(self._scopes),
                queries.company_attendance(self._scopes),
            ]
        return [
            queries.my_attendance_week(self._scopes, identity_id, self._today()),
            queries.my_pto_requests(self._scopes, identity_id),
        ]


class ViewSessionRegistry:
    """One ViewSession per signed-in identity.

    Sessions not touched by `open`/`get` for `idle_seconds` are closed on the
    next `open`, so identities that never sign out do not keep listeners alive.
    `idle_seconds=0` disables eviction.
    """

    def __init__(
        self,
        store: RecordStore,
        scopes: ScopeFactory,
        *,
        idle_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = lambda: now_local().date(),
    ):
        self._store = store
        self._scopes = scopes
        self._idle_seconds = float(idle_seconds)
        self._clock = clock
        self._today = today
        self._lock = threading.Lock()
        self._sessions: dict[str, ViewSession] = {}
        self._last_seen: dict[str, float] = {}

    def open(self, identity_id: str, role: Role) -> ViewSession:
        self.evict_idle()
        with self._lock:
            session = self._sessions.get(identity_id)
            if session is None:
                session = ViewSession(self._store, self._scopes, today=self._today)
                self._sessions[identity_id] = session
            self._last_seen[identity_id] = self._clock()
        session.start(identity_id, role)
        return session

    def get(self, identity_id: str) -> Optional[ViewSession]:
        with self._lock:
            session = self._sessions.get(identity_id)
            if session is not None:
                self._last_seen[identity_id] = self._clock()
            return session

    def evict_idle(self) -> int:
        if self._idle_seconds <= 0:
            return 0
        cutoff = self._clock() - self._idle_seconds
        with self._lock:
            idle = [i for i, seen in self._last_seen.items() if seen < cutoff]
            sessions = [self._sessions.pop(i) for i in idle if i in self._sessions]
            for i in idle:
                self._last_seen.pop(i, None)
        for session in sessions:
            session.close()
        if sessions:
            logger.info("Evicted %d idle view sessions", len(sessions))
        return len(sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def close(self, identity_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(identity_id, None)
            self._last_seen.pop(identity_id, None)
        if session is not None:
            session.close()

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_seen.clear()
        for session in sessions:
            session.close()
