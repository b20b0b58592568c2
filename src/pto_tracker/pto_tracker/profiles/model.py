from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..core.constants import DEFAULT_PTO_BALANCE_HOURS
from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Profile snapshot supplied by the profile provider."""

    user_id: str
    name: str
    role: Role
    company_name: str
    title: str
    manager: str
    pto_balance_hours: float = DEFAULT_PTO_BALANCE_HOURS

    @property
    def is_management(self) -> bool:
        return self.role == Role.MANAGEMENT

    def to_document(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "role": self.role.value,
            "companyName": self.company_name,
            "title": self.title,
            "manager": self.manager,
            "ptoBalanceHours": self.pto_balance_hours,
        }

    @classmethod
    def from_document(cls, user_id: str, data: Mapping[str, Any]) -> "Profile":
        return cls(
            user_id=str(data.get("userId") or user_id),
            name=str(data.get("name") or ""),
            role=Role(data["role"]),
            company_name=str(data.get("companyName") or ""),
            title=str(data.get("title") or ""),
            manager=str(data.get("manager") or ""),
            pto_balance_hours=float(data.get("ptoBalanceHours") or 0),
        )
