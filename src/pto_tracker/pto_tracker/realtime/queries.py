from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import week_bounds
from ..notifications.model import Notification
from ..pto.model import PtoRequest
from ..store.model import Query
from ..store.scopes import ScopeFactory
from .view import MaterializedView

MY_ATTENDANCE_WEEK = "my_attendance_week"
MY_PTO_REQUESTS = "my_pto_requests"
ALL_PTO_REQUESTS = "all_pto_requests"
ALL_NOTIFICATIONS = "all_notifications"
COMPANY_ATTENDANCE = "company_attendance"


def _newest_first(ts: Optional[datetime]):
    # Used with descending order: unresolved timestamps sort as newest.
    return (ts is None, ts or datetime.min)


def _chronological(record: AttendanceRecord):
    return (record.report_date, record.report_time or time.min)


def my_attendance_week(scopes: ScopeFactory, employee_id: str, today: date) -> MaterializedView[AttendanceRecord]:
    start, end = week_bounds(today)
    query = Query(scopes.attendance(employee_id)).where("timestamp", ">=", start).where("timestamp", "<=", end)
    return MaterializedView(
        MY_ATTENDANCE_WEEK,
        query,
        AttendanceRecord.from_document,
        sort_key=_chronological,
        id_of=lambda r: r.record_id,
    )


def my_pto_requests(scopes: ScopeFactory, employee_id: str) -> MaterializedView[PtoRequest]:
    query = Query(scopes.pto_requests()).where("requesterId", "==", employee_id)
    return MaterializedView(
        MY_PTO_REQUESTS,
        query,
        PtoRequest.from_document,
        sort_key=lambda r: _newest_first(r.created_at),
        id_of=lambda r: r.request_id,
        descending=True,
    )


def all_pto_requests(scopes: ScopeFactory) -> MaterializedView[PtoRequest]:
    return MaterializedView(
        ALL_PTO_REQUESTS,
        Query(scopes.pto_requests()),
        PtoRequest.from_document,
        sort_key=lambda r: _newest_first(r.created_at),
        id_of=lambda r: r.request_id,
        descending=True,
    )


def all_notifications(scopes: ScopeFactory) -> MaterializedView[Notification]:
    return MaterializedView(
        ALL_NOTIFICATIONS,
        Query(scopes.notifications()),
        Notification.from_document,
        sort_key=lambda n: _newest_first(n.timestamp),
        id_of=lambda n: n.notification_id,
        descending=True,
    )


def company_attendance(scopes: ScopeFactory) -> MaterializedView[AttendanceRecord]:
    return MaterializedView(
        COMPANY_ATTENDANCE,
        Query(scopes.all_attendance(), group=True),
        AttendanceRecord.from_document,
        sort_key=_chronological,
        id_of=lambda r: r.record_id,
    )
