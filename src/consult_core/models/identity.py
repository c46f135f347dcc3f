"""Caller identity as supplied by the auth layer."""

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    """Platform roles carried in access tokens."""

    CLIENT = "client"
    LAWYER = "lawyer"
    ADMIN = "admin"


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller. The core trusts it unconditionally."""

    user_id: str
    role: UserRole = UserRole.CLIENT

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
