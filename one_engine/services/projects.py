"""
Project service - multi-tenant project management.

A project is a tenant: it owns an API key and the settings that scope
everything created under it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from one_engine.api.pagination import PaginationParams, paginate_list
from one_engine.auth.context import ProjectRecord
from one_engine.core.utils import generate_api_key, generate_id, slugify, utc_now
from one_engine.services.errors import AlreadyExistsError, NotFoundError
from one_engine.storage import Collections, StorageProvider

logger = logging.getLogger(__name__)


class Project(BaseModel):
    id: str
    name: str
    slug: str
    owner_id: str
    api_key: str
    is_active: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def public_view(self, reveal_key: bool = False) -> dict[str, Any]:
        """Project as returned to clients; the API key is masked unless revealed."""
        data = self.model_dump(mode="json", exclude={"api_key"})
        if reveal_key:
            data["api_key"] = self.api_key
        else:
            data["api_key_preview"] = f"{self.api_key[:10]}..."
        return data


class ProjectService:
    def __init__(self, storage: StorageProvider, api_key_prefix: str = "one_"):
        self.storage = storage
        self.api_key_prefix = api_key_prefix

    # -------------------------------------------------------------------------
    # Create / read
    # -------------------------------------------------------------------------

    async def create_project(
        self,
        owner_id: str,
        name: str,
        slug: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> Project:
        slug = slug or slugify(name)

        if not await self.is_slug_available(slug):
            raise AlreadyExistsError(f'Project slug "{slug}" is already taken')

        project = Project(
            id=generate_id("proj"),
            name=name,
            slug=slug,
            owner_id=owner_id,
            api_key=generate_api_key(self.api_key_prefix),
            settings=settings or {},
        )
        await self._save(project)

        logger.info(f"Project created: {project.id} (slug={slug}, owner={owner_id})")
        return project

    async def is_slug_available(self, slug: str) -> bool:
        return await self.storage.metadata.count(Collections.PROJECTS, {"slug": slug}) == 0

    async def get_project(self, project_id: str) -> Project | None:
        data = await self.storage.metadata.get(Collections.PROJECTS, project_id)
        return Project.model_validate(data) if data else None

    async def find_project(self, project_id: str) -> ProjectRecord | None:
        """ProjectStore lookup used by the project credential policy."""
        project = await self.get_project(project_id)
        if project is None:
            return None
        return ProjectRecord(
            id=project.id,
            owner_id=project.owner_id,
            api_key=project.api_key,
            is_active=project.is_active,
        )

    async def get_user_projects(self, user_id: str, is_active: bool | None = None) -> list[Project]:
        filters: dict[str, Any] = {"owner_id": user_id}
        if is_active is not None:
            filters["is_active"] = is_active
        rows = await self.storage.metadata.query(Collections.PROJECTS, filters, limit=1_000)
        projects = [Project.model_validate(r) for r in rows]
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    # -------------------------------------------------------------------------
    # Update / delete
    # -------------------------------------------------------------------------

    async def update_project(
        self,
        project_id: str,
        name: str | None = None,
        is_active: bool | None = None,
        settings: dict[str, Any] | None = None,
    ) -> Project:
        project = await self.get_project(project_id)
        if project is None:
            raise NotFoundError("Project")

        updates: dict[str, Any] = {"updated_at": utc_now().isoformat()}
        if name is not None:
            updates["name"] = name
        if is_active is not None:
            updates["is_active"] = is_active
        if settings is not None:
            updates["settings"] = {**project.settings, **settings}

        await self.storage.metadata.update(Collections.PROJECTS, project_id, updates)
        return await self.get_project(project_id)

    async def regenerate_api_key(self, project_id: str) -> str:
        if await self.get_project(project_id) is None:
            raise NotFoundError("Project")

        api_key = generate_api_key(self.api_key_prefix)
        await self.storage.metadata.update(
            Collections.PROJECTS,
            project_id,
            {"api_key": api_key, "updated_at": utc_now().isoformat()},
        )
        logger.info(f"Regenerated API key for project {project_id}")
        return api_key

    async def delete_project(self, project_id: str) -> None:
        if not await self.storage.metadata.delete(Collections.PROJECTS, project_id):
            raise NotFoundError("Project")
        logger.info(f"Deleted project {project_id}")

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    async def list_projects(
        self,
        params: PaginationParams,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> dict[str, Any]:
        """All tenants, filtered by name/slug search and active flag."""
        filters = {"is_active": is_active} if is_active is not None else None
        rows = await self.storage.metadata.query(Collections.PROJECTS, filters, limit=10_000)

        if search:
            needle = search.lower()
            rows = [
                r for r in rows
                if needle in r.get("name", "").lower() or needle in r.get("slug", "").lower()
            ]

        if not params.sort_by:
            params = PaginationParams(params.page, params.limit, "created_at", params.sort_order)

        result = paginate_list(rows, params)
        result["items"] = [Project.model_validate(r).public_view() for r in result["items"]]
        return result

    async def count_projects(self, is_active: bool | None = None) -> int:
        filters = {"is_active": is_active} if is_active is not None else None
        return await self.storage.metadata.count(Collections.PROJECTS, filters)

    async def _save(self, project: Project) -> None:
        await self.storage.metadata.save(
            Collections.PROJECTS,
            project.id,
            project.model_dump(mode="json"),
        )
