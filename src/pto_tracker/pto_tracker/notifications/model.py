from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import NotificationType
from ..store.model import Document


@dataclass(frozen=True)
class Notification:
    """Organization-visible event derived from a submission or decision.

    `attendance_record_id` is a lookup-only back-reference to the call-out
    (or other report) the notification was derived from.
    """

    notification_id: str
    type: NotificationType
    employee_id: Optional[str]
    employee_name: Optional[str]
    message: str
    timestamp: Optional[datetime] = None
    attendance_record_id: Optional[str] = None
    notification_handled: bool = False

    @property
    def awaits_pto_decision(self) -> bool:
        return self.type == NotificationType.CALL_OUT and not self.notification_handled

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "type": self.type.value,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "message": self.message,
            "timestamp": self.timestamp,
            "notificationHandled": self.notification_handled,
        }
        if self.attendance_record_id is not None:
            doc["attendanceRecordId"] = self.attendance_record_id
        return doc

    @classmethod
    def from_document(cls, doc: Document) -> "Notification":
        d = doc.data
        return cls(
            notification_id=doc.id,
            type=NotificationType(d["type"]),
            employee_id=d.get("employeeId"),
            employee_name=d.get("employeeName"),
            message=str(d.get("message") or ""),
            timestamp=d.get("timestamp"),
            attendance_record_id=d.get("attendanceRecordId"),
            notification_handled=bool(d.get("notificationHandled", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.notification_id, **self.to_document()}
