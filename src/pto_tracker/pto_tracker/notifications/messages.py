from __future__ import annotations

from datetime import date
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import ReportType, RequestStatus


def attendance_report_message(employee_name: str, record: AttendanceRecord) -> str:
    message = f"Employee {employee_name} reported {record.report_type.label} for {record.report_date.isoformat()}. "
    if record.report_type == ReportType.LATE and record.lateness_duration is not None:
        message += f"Duration: {record.lateness_duration.value}."
    elif record.report_type == ReportType.EARLY_LEAVE:
        message += f"Reason: {record.early_leave_reason}."
    elif record.report_type == ReportType.CALL_OUT:
        message += f"Reason: {record.reason}."
    return message


def pto_request_message(employee_name: str, start_date: date, end_date: date) -> str:
    return f"Employee {employee_name} requested PTO from {start_date.isoformat()} to {end_date.isoformat()}."


def pto_status_message(requester_name: Optional[str], request_id: str, status: RequestStatus) -> str:
    if requester_name:
        return f"PTO request for {requester_name} has been {status.value}."
    return f"PTO request {request_id} has been {status.value}."
