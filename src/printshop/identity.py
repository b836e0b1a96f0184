"""Identity contract consumed by the reporting surface."""

import hmac
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import AdminRequiredError

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    role: str = ROLE_USER

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role}


class Identity(Protocol):
    def is_admin(self) -> bool: ...


class StaticIdentity:
    """Answers from a fixed user; no user means an anonymous session."""

    def __init__(self, user: User | None = None):
        self.user = user

    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == ROLE_ADMIN


class TokenIdentity:
    """Admin if the presented token equals the configured admin token."""

    def __init__(self, presented: str | None, admin_token: str):
        self._presented = presented
        self._admin_token = admin_token

    def is_admin(self) -> bool:
        if not self._presented or not self._admin_token:
            return False
        return hmac.compare_digest(self._presented, self._admin_token)


def require_admin(identity: Identity) -> None:
    """
    Raises:
        AdminRequiredError: If the identity is not an admin.
    """
    if not identity.is_admin():
        raise AdminRequiredError()
