from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Opaque authenticated identity. The core never sees credentials."""

    id: Optional[str]
    is_authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls(id=None, is_authenticated=False)
