from __future__ import annotations

import pytest

from src.pto_tracker.pto_tracker.core.exceptions import NotReadyError
from src.pto_tracker.pto_tracker.identity.provider import StaticIdentityProvider, require_identity


def test_require_identity_returns_signed_in_id():
    assert require_identity(StaticIdentityProvider("u1")) == "u1"


def test_require_identity_rejects_anonymous_and_signed_out():
    with pytest.raises(NotReadyError):
        require_identity(StaticIdentityProvider())

    provider = StaticIdentityProvider("u1")
    provider.sign_out()
    with pytest.raises(NotReadyError):
        require_identity(provider)
