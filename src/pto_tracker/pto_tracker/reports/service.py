from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import ReportType, RequestStatus
from ..notifications.model import Notification
from ..pto.model import PtoRequest


@dataclass(frozen=True)
class EmployeeDayGroup:
    employee_id: str
    employee_name: str
    title: str
    manager: str
    rows: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class WeeklyReceipt:
    activities: tuple[AttendanceRecord, ...]
    pto_activities: tuple[AttendanceRecord, ...]
    total_pto_hours: float


@dataclass(frozen=True)
class DashboardSummary:
    pending_pto_requests: int
    unhandled_call_outs: int
    total_notifications: int


def pto_hours_label(record: AttendanceRecord) -> str:
    if record.is_call_out and record.pto_allocated:
        return f"{record.pto_hours:g} hrs"
    return "0 hrs"


class AttendanceReportService:
    """Read-side aggregates built from materialized view items."""

    def build_daily_report(self, records: Iterable[AttendanceRecord], report_date: date) -> list[EmployeeDayGroup]:
        groups: dict[str, EmployeeDayGroup] = {}
        for r in records:
            if r.report_date != report_date:
                continue
            group = groups.get(r.employee_id)
            if group is None:
                group = EmployeeDayGroup(
                    employee_id=r.employee_id,
                    employee_name=r.employee_name,
                    title=r.title,
                    manager=r.manager,
                )
                groups[r.employee_id] = group
            group.rows.append(self._to_row(r))

        return sorted(groups.values(), key=lambda g: (g.employee_name.lower(), g.employee_id))

    def weekly_receipt(self, week_records: Sequence[AttendanceRecord]) -> WeeklyReceipt:
        pto = tuple(r for r in week_records if r.is_call_out and r.pto_allocated)
        return WeeklyReceipt(
            activities=tuple(week_records),
            pto_activities=pto,
            total_pto_hours=sum(r.pto_hours for r in pto),
        )

    def dashboard_summary(
        self,
        pto_requests: Iterable[PtoRequest],
        notifications: Sequence[Notification],
    ) -> DashboardSummary:
        return DashboardSummary(
            pending_pto_requests=sum(1 for r in pto_requests if r.status == RequestStatus.PENDING),
            unhandled_call_outs=sum(1 for n in notifications if n.awaits_pto_decision),
            total_notifications=len(notifications),
        )

    def _to_row(self, r: AttendanceRecord) -> dict:
        detail = {
            ReportType.CALL_OUT: r.reason or "",
            ReportType.LATE: r.lateness_duration.value if r.lateness_duration else "",
            ReportType.EARLY_LEAVE: r.early_leave_reason or "",
        }.get(r.report_type, "")

        return {
            "id": r.record_id,
            "type": r.report_type.value,
            "label": r.report_type.label,
            "date": r.report_date.strftime("%Y-%m-%d"),
            "time": r.report_time.strftime("%H:%M") if r.report_time else "-",
            "detail": detail,
            "pto": pto_hours_label(r),
            "notification_handled": r.notification_handled,
        }
