"""Explicit session context (identity and role).

The session flags live in the local key-value store under the keys
``isAuthenticated``, ``userRole`` and ``userId``; this object is loaded from
and saved to it at process boundaries and passed to whatever needs to know
who is acting. It is a convenience, not a security boundary: credentials
are never checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import AccessDeniedError
from .records.cache import KeyValueStore

DEFAULT_USER_ID = "demo-user"

_AUTH_KEY = "isAuthenticated"
_ROLE_KEY = "userRole"
_USER_KEY = "userId"


class Role(str, Enum):
    USER = "user"
    DOCTOR = "doctor"
    ADMIN = "admin"


@dataclass
class SessionContext:
    """Who is acting, and as what."""

    user_id: str = DEFAULT_USER_ID
    role: Role = Role.USER
    is_authenticated: bool = False

    @classmethod
    def load(cls, kv: KeyValueStore) -> SessionContext:
        """Read the stored session flags (unknown roles fall back to user)."""
        try:
            role = Role(kv.get(_ROLE_KEY) or Role.USER.value)
        except ValueError:
            role = Role.USER
        return cls(
            user_id=kv.get(_USER_KEY) or DEFAULT_USER_ID,
            role=role,
            is_authenticated=kv.get(_AUTH_KEY) == "true",
        )

    def save(self, kv: KeyValueStore) -> None:
        kv.set(_AUTH_KEY, "true" if self.is_authenticated else "false")
        kv.set(_ROLE_KEY, self.role.value)
        kv.set(_USER_KEY, self.user_id)

    @staticmethod
    def clear(kv: KeyValueStore) -> None:
        for key in (_AUTH_KEY, _ROLE_KEY, _USER_KEY):
            kv.remove(key)

    def require(self, *roles: Role) -> None:
        """Raise AccessDeniedError unless signed in with one of *roles*."""
        if not self.is_authenticated:
            raise AccessDeniedError("Not signed in")
        if roles and self.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise AccessDeniedError(f"Role {self.role.value!r} is not allowed (needs {allowed})")

    def can_access(self, patient_id: str) -> bool:
        """Admins and doctors read any record; users only their own."""
        if not self.is_authenticated:
            return False
        return self.role in (Role.ADMIN, Role.DOCTOR) or patient_id == self.user_id
