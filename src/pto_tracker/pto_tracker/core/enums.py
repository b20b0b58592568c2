from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role stored on the profile."""

    EMPLOYEE = "employee"
    MANAGEMENT = "management"


class ReportType(str, Enum):
    """Kinds of attendance exception an employee can report."""

    CALL_OUT = "call_out"
    LATE = "late"
    EARLY_LEAVE = "early_leave"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class LatenessDuration(str, Enum):
    UP_TO_15_MIN = "0-15min"
    FROM_20_TO_30_MIN = "20-30min"
    HOUR_OR_MORE = "1hour+"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"


class RequestStatus(str, Enum):
    """PTO request approval flow: pending -> approved | rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class NotificationType(str, Enum):
    CALL_OUT = "call_out"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    PTO_REQUEST = "pto_request"
    PTO_STATUS_UPDATE = "pto_status_update"
