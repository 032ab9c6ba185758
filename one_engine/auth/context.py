"""
Principal resolution - the "who is calling" for each request.

A Principal is built fresh for every request from a verified token plus
the persisted user record. It is never cached across requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol

from pydantic import BaseModel

from one_engine.auth.errors import UserInactiveError, UserNotFoundError
from one_engine.auth.roles import ADMIN_ROLES, UserRole, parse_role
from one_engine.auth.tokens import TokenPayload


class UserRecord(BaseModel):
    """The slice of a persisted user that authorization needs."""
    id: str
    role: str = "user"
    is_active: bool = True
    email: str | None = None
    project_id: str | None = None


class UserStore(Protocol):
    """Anything that can look a user up by id."""

    async def find_by_id(self, user_id: str) -> UserRecord | None: ...


@dataclass(frozen=True)
class Principal:
    """
    Authenticated identity attached to one request.

    Usage in routes:
        outcome = await gate.require_auth(request)
        if isinstance(outcome, Terminal):
            return outcome
        principal = outcome.principal
    """

    user_id: str
    role: UserRole
    is_active: bool
    project_id: str | None = None
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def public_view(self) -> dict[str, Any]:
        """Fields safe to echo back to the caller."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "project_id": self.project_id,
        }


class PrincipalResolver:
    """Confirms a verified token against the user store."""

    def __init__(self, users: UserStore):
        self.users = users

    async def resolve(self, payload: TokenPayload) -> Principal:
        """
        Load the acting user for a verified token.

        Role always comes from the persisted record. Project scope comes
        from the record when set, otherwise from the token.

        Raises:
            UserNotFoundError: no record for the token subject
            UserInactiveError: record exists but is deactivated
        """
        record = await self.users.find_by_id(payload.sub)
        if record is None:
            raise UserNotFoundError(f"No user for subject {payload.sub}")
        if not record.is_active:
            raise UserInactiveError(f"User {record.id} is inactive")

        return Principal(
            user_id=record.id,
            role=parse_role(record.role),
            is_active=record.is_active,
            project_id=record.project_id or payload.project_id,
            email=record.email or payload.email,
        )


# =============================================================================
# Project credentials
# =============================================================================

KeyType = Literal["publishable", "secret"]


class ProjectRecord(BaseModel):
    """The slice of a persisted project that credential checks need."""
    id: str
    owner_id: str
    api_key: str
    is_active: bool = True


class ProjectStore(Protocol):
    async def find_project(self, project_id: str) -> ProjectRecord | None: ...


@dataclass(frozen=True)
class ProjectContext:
    """
    The calling tenant on a project-credential request.

    A client id alone identifies a publishable (read-only) caller; adding
    the project's secret key grants every permission.
    """

    project_id: str
    owner_id: str
    key_type: KeyType
    permissions: tuple[str, ...]

    def has_permission(self, permission: str) -> bool:
        return "*" in self.permissions or permission in self.permissions
