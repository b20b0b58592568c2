from __future__ import annotations

from typing import Optional

from ..common.validators import coerce_enum, require_non_empty
from ..core.constants import DEFAULT_PTO_BALANCE_HOURS, MANAGEMENT_MANAGER_PLACEHOLDER
from ..core.enums import Role
from ..core.exceptions import NotReadyError
from .model import Profile
from .repository import ProfileProvider


class ProfileService:
    """Use case: first-login profile setup."""

    def __init__(self, profiles: ProfileProvider):
        self._profiles = profiles

    def get(self, user_id: str) -> Optional[Profile]:
        return self._profiles.get_profile(user_id)

    def setup_profile(
        self,
        *,
        user_id: str,
        name: str,
        role,
        company_name: str,
        title: str,
        manager: str = "",
    ) -> Profile:
        if not user_id:
            raise NotReadyError("Not signed in")

        role = coerce_enum(Role, role, "Role")
        profile = Profile(
            user_id=str(user_id),
            name=require_non_empty(name, "Name"),
            role=role,
            company_name=require_non_empty(company_name, "Company name"),
            title=require_non_empty(title, "Title"),
            manager=(
                require_non_empty(manager, "Manager")
                if role == Role.EMPLOYEE
                else MANAGEMENT_MANAGER_PLACEHOLDER
            ),
            pto_balance_hours=DEFAULT_PTO_BALANCE_HOURS if role == Role.EMPLOYEE else 0,
        )
        self._profiles.save_profile(profile.user_id, profile)
        return profile
