from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Mapping, Optional

from ..core.enums import LatenessDuration, ReportType
from ..store.model import Document


@dataclass(frozen=True)
class AttendanceReportInput:
    """Raw report as submitted by the employee (validated by the workflow service)."""

    report_type: Any
    report_date: Any
    report_time: Any = None
    reason: Optional[str] = None
    lateness_duration: Any = None
    early_leave_reason: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AttendanceReportInput":
        return cls(
            report_type=data.get("type"),
            report_date=data.get("date"),
            report_time=data.get("time"),
            reason=data.get("reason"),
            lateness_duration=data.get("latenessDuration"),
            early_leave_reason=data.get("earlyLeaveReason"),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one reported attendance exception.

    Only the field set matching `report_type` is populated: `reason` for
    call_out, `lateness_duration` (+ optional `reason`) for late and
    `early_leave_reason` for early_leave.
    """

    record_id: str
    employee_id: str
    report_type: ReportType
    report_date: date
    report_time: Optional[time]
    reason: Optional[str]
    lateness_duration: Optional[LatenessDuration]
    early_leave_reason: Optional[str]
    employee_name: str
    company_name: str
    title: str
    manager: str
    pto_allocated: bool = False
    pto_hours: float = 0.0
    notification_handled: bool = False
    timestamp: Optional[datetime] = None

    @property
    def is_call_out(self) -> bool:
        return self.report_type == ReportType.CALL_OUT

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "type": self.report_type.value,
            "date": self.report_date.isoformat(),
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "companyName": self.company_name,
            "title": self.title,
            "manager": self.manager,
            "ptoAllocated": self.pto_allocated,
            "ptoHours": self.pto_hours,
            "notificationHandled": self.notification_handled,
            "timestamp": self.timestamp,
        }
        if self.report_time is not None:
            doc["time"] = self.report_time.strftime("%H:%M")
        if self.reason is not None:
            doc["reason"] = self.reason
        if self.lateness_duration is not None:
            doc["latenessDuration"] = self.lateness_duration.value
        if self.early_leave_reason is not None:
            doc["earlyLeaveReason"] = self.early_leave_reason
        return doc

    @classmethod
    def from_document(cls, doc: Document) -> "AttendanceRecord":
        d = doc.data
        raw_time = d.get("time")
        return cls(
            record_id=doc.id,
            employee_id=str(d.get("employeeId") or doc.scope.employee_id or ""),
            report_type=ReportType(d["type"]),
            report_date=date.fromisoformat(d["date"]),
            report_time=datetime.strptime(raw_time, "%H:%M").time() if raw_time else None,
            reason=d.get("reason"),
            lateness_duration=LatenessDuration(d["latenessDuration"]) if d.get("latenessDuration") else None,
            early_leave_reason=d.get("earlyLeaveReason"),
            employee_name=str(d.get("employeeName") or ""),
            company_name=str(d.get("companyName") or ""),
            title=str(d.get("title") or ""),
            manager=str(d.get("manager") or ""),
            pto_allocated=bool(d.get("ptoAllocated", False)),
            pto_hours=float(d.get("ptoHours") or 0),
            notification_handled=bool(d.get("notificationHandled", False)),
            timestamp=d.get("timestamp"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.record_id, **self.to_document()}
