from __future__ import annotations

from typing import Optional, Protocol

from ..core.exceptions import NotReadyError
from .model import Identity


class IdentityProvider(Protocol):
    def current_identity(self) -> Identity:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError


class StaticIdentityProvider:
    """Fixed identity, for scripts and service-level use without Flask."""

    def __init__(self, user_id: Optional[str] = None):
        self._identity = Identity(id=user_id, is_authenticated=bool(user_id))

    def current_identity(self) -> Identity:
        return self._identity

    def sign_out(self) -> None:
        self._identity = Identity.anonymous()


def require_identity(provider: IdentityProvider) -> str:
    identity = provider.current_identity()
    if not identity.is_authenticated or not identity.id:
        raise NotReadyError("Not signed in")
    return identity.id
