"""
User service - the persisted user store.

Serves two callers: the principal resolver (find_by_id) and the admin
user listing.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from one_engine.api.pagination import PaginationParams, paginate_list
from one_engine.auth.context import UserRecord
from one_engine.auth.roles import UserRole
from one_engine.core.utils import generate_id, utc_now
from one_engine.services.errors import AlreadyExistsError
from one_engine.storage import Collections, StorageProvider

logger = logging.getLogger(__name__)

# What a project sees of its users without the secret key
PROJECT_USER_FIELDS = {"id", "wallet_address", "is_active", "created_at"}


class User(BaseModel):
    """User stored in the database."""
    id: str
    email: str
    role: UserRole = UserRole.USER
    is_active: bool = True
    project_id: str | None = None
    wallet_address: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_record(self) -> UserRecord:
        return UserRecord(
            id=self.id,
            role=self.role.value,
            is_active=self.is_active,
            email=self.email,
            project_id=self.project_id,
        )


class UserService:
    def __init__(self, storage: StorageProvider):
        self.storage = storage

    async def create_user(
        self,
        email: str,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
        project_id: str | None = None,
        user_id: str | None = None,
    ) -> User:
        if await self.find_by_email(email):
            raise AlreadyExistsError("Email already registered")

        user = User(
            id=user_id or generate_id("user"),
            email=email.lower(),
            role=role,
            is_active=is_active,
            project_id=project_id,
        )
        await self.storage.metadata.save(Collections.USERS, user.id, user.model_dump(mode="json"))
        logger.info(f"Created user {user.id} ({user.role.value})")
        return user

    async def get_user(self, user_id: str) -> User | None:
        data = await self.storage.metadata.get(Collections.USERS, user_id)
        return User.model_validate(data) if data else None

    async def find_by_id(self, user_id: str) -> UserRecord | None:
        """UserStore lookup used by the principal resolver."""
        user = await self.get_user(user_id)
        return user.to_record() if user else None

    async def find_by_email(self, email: str) -> User | None:
        rows = await self.storage.metadata.query(Collections.USERS, {"email": email.lower()}, limit=1)
        return User.model_validate(rows[0]) if rows else None

    async def set_active(self, user_id: str, is_active: bool) -> bool:
        return await self.storage.metadata.update(
            Collections.USERS,
            user_id,
            {"is_active": is_active, "updated_at": utc_now().isoformat()},
        )

    async def list_users(
        self,
        params: PaginationParams,
        search: str | None = None,
        role: UserRole | None = None,
    ) -> dict[str, Any]:
        """Admin listing: filter, sort (default newest first) and paginate."""
        filters = {"role": role.value} if role else None
        rows = await self.storage.metadata.query(Collections.USERS, filters, limit=10_000)

        if search:
            needle = search.lower()
            rows = [
                r for r in rows
                if needle in r.get("email", "").lower()
                or needle in (r.get("wallet_address") or "").lower()
            ]

        if not params.sort_by:
            params = PaginationParams(params.page, params.limit, "created_at", params.sort_order)

        result = paginate_list(rows, params)
        result["items"] = [_public_user(row) for row in result["items"]]
        return result

    async def list_project_users(
        self,
        project_id: str,
        params: PaginationParams,
        include_contact: bool = False,
    ) -> dict[str, Any]:
        """Users scoped to one tenant, newest first. Email only with include_contact."""
        rows = await self.storage.metadata.query(Collections.USERS, {"project_id": project_id}, limit=10_000)
        result = paginate_list(rows, PaginationParams(params.page, params.limit, "created_at", "desc"))

        fields = PROJECT_USER_FIELDS | ({"email"} if include_contact else set())
        result["items"] = [User.model_validate(r).model_dump(mode="json", include=fields) for r in result["items"]]
        return result

    async def count_users(self, since: datetime | None = None) -> int:
        if since is None:
            return await self.storage.metadata.count(Collections.USERS)
        rows = await self.storage.metadata.query(Collections.USERS, limit=100_000)
        return sum(1 for r in rows if User.model_validate(r).created_at >= since)


def _public_user(row: dict[str, Any]) -> dict[str, Any]:
    user = User.model_validate(row)
    return user.model_dump(mode="json")
