"""Identities on whose behalf the harness talks to the backends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class PrincipalKind(str, Enum):
    DISTRIBUTOR = "distributor"
    ADMINISTRATOR = "administrator"
    TRADER = "trader"


@dataclass(frozen=True)
class Principal:
    """An immutable identity carried into session token claims."""

    email: str
    uid: str
    kind: PrincipalKind
    level: int = 3
    state: str = "active"

    def claims(self) -> dict[str, Any]:
        """Claims the backends use to identify the caller."""
        return {
            "email": self.email,
            "uid": self.uid,
            "level": self.level,
            "state": self.state,
        }


# Fixed identities known to the applogic service ahead of time
DISTRIBUTOR = Principal(
    email="distributor@ico-stress.test",
    uid="ID5C4F0A1B2D",
    kind=PrincipalKind.DISTRIBUTOR,
)
ADMINISTRATOR = Principal(
    email="admin@ico-stress.test",
    uid="ID9E8D7C6B5A",
    kind=PrincipalKind.ADMINISTRATOR,
)
