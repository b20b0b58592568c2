from __future__ import annotations

from typing import Optional

from ..core.constants import PROFILE_DOC_ID
from ..store.repository import RecordStore
from ..store.scopes import ScopeFactory
from .model import Profile
from .repository import ProfileProvider


class StoreProfileRepository(ProfileProvider):
    """Profiles kept as the single `data` document of each user's profiles scope."""

    def __init__(self, store: RecordStore, scopes: ScopeFactory):
        self._store = store
        self._scopes = scopes

    def get_profile(self, user_id: str) -> Optional[Profile]:
        doc = self._store.get(self._scopes.profiles(user_id), PROFILE_DOC_ID)
        if doc is None or not doc.get("role"):
            return None
        return Profile.from_document(user_id, doc.data)

    def save_profile(self, user_id: str, profile: Profile) -> None:
        scope = self._scopes.profiles(user_id)
        if self._store.get(scope, PROFILE_DOC_ID) is None:
            self._store.create(scope, profile.to_document(), doc_id=PROFILE_DOC_ID)
        else:
            self._store.update(scope, PROFILE_DOC_ID, profile.to_document())
