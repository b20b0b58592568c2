from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..core.enums import LeaveType, RequestStatus
from ..store.model import Document


@dataclass(frozen=True)
class PtoRequestInput:
    start_date: Any
    end_date: Any
    leave_type: Any
    notes: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PtoRequestInput":
        return cls(
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            leave_type=data.get("leaveType"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class PtoRequest:
    request_id: str
    requester_id: str
    requester_name: str
    start_date: date
    end_date: date
    leave_type: LeaveType
    notes: Optional[str]
    status: RequestStatus
    created_at: Optional[datetime] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_document(self) -> dict[str, Any]:
        return {
            "requesterId": self.requester_id,
            "requesterName": self.requester_name,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "leaveType": self.leave_type.value,
            "notes": self.notes,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: Document) -> "PtoRequest":
        d = doc.data
        return cls(
            request_id=doc.id,
            requester_id=str(d["requesterId"]),
            requester_name=str(d.get("requesterName") or ""),
            start_date=date.fromisoformat(d["startDate"]),
            end_date=date.fromisoformat(d["endDate"]),
            leave_type=LeaveType(d["leaveType"]),
            notes=d.get("notes"),
            status=RequestStatus(d["status"]),
            created_at=d.get("createdAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.request_id, **self.to_document()}
