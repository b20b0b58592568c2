from __future__ import annotations

from typing import Optional, Protocol

from .model import Profile


class ProfileProvider(Protocol):
    def get_profile(self, user_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def save_profile(self, user_id: str, profile: Profile) -> None:
        raise NotImplementedError
