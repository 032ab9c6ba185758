# =============================================================================
# Project API Routes
# =============================================================================
#
# Endpoints:
#   GET    /api/v1/projects                        - Caller's projects
#   POST   /api/v1/projects                        - Create project
#   GET    /api/v1/projects/{project_id}           - Project details (owner)
#   PATCH  /api/v1/projects/{project_id}           - Update project (owner)
#   DELETE /api/v1/projects/{project_id}           - Delete project (owner)
#   POST   /api/v1/projects/{project_id}/api-key   - Regenerate API key (owner)
#
# =============================================================================

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import Field

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import get_auth_gate, get_project_service
from one_engine.api.responses import Terminal, errors, success
from one_engine.api.validation import (
    ActiveFlag,
    ApiModel,
    parse_flag,
    validate_body,
    validate_params,
    validate_query,
)
from one_engine.auth import AuthGate, Principal
from one_engine.services import Project, ProjectService

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


# =============================================================================
# Schemas
# =============================================================================


class ProjectListQuery(ApiModel):
    is_active: ActiveFlag | None = None


class CreateProjectBody(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=50, pattern=r"^[a-z0-9-]+$")
    settings: dict[str, Any] | None = None


class UpdateProjectBody(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    is_active: bool | None = None
    settings: dict[str, Any] | None = None


class ProjectParams(ApiModel):
    project_id: str = Field(min_length=1, max_length=64)


async def _owned_project(
    request: Request,
    projects: ProjectService,
    principal: Principal,
    action: str,
) -> Project | Terminal:
    params = validate_params(request.path_params, ProjectParams)
    if isinstance(params, Terminal):
        return params

    project = await projects.get_project(params.value.project_id)
    if project is None:
        return errors.not_found("Project")
    if project.owner_id != principal.user_id:
        return errors.forbidden(f"Not authorized to {action} this project")
    return project


# =============================================================================
# Collection
# =============================================================================


@router.get("")
@error_boundary("Failed to fetch projects")
async def list_projects(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    projects: ProjectService = Depends(get_project_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, ProjectListQuery)
    if isinstance(query, Terminal):
        return query

    items = await projects.get_user_projects(
        outcome.principal.user_id,
        is_active=parse_flag(query.value.is_active),
    )
    return success({"projects": [p.public_view() for p in items], "total": len(items)})


@router.post("")
@error_boundary("Failed to create project")
async def create_project(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    projects: ProjectService = Depends(get_project_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    body = await validate_body(request, CreateProjectBody)
    if isinstance(body, Terminal):
        return body

    project = await projects.create_project(
        owner_id=outcome.principal.user_id,
        name=body.value.name,
        slug=body.value.slug,
        settings=body.value.settings,
    )
    return success({"project": project.public_view(reveal_key=True)}, status_code=201)


# =============================================================================
# Single project
# =============================================================================


@router.get("/{project_id}")
@error_boundary("Failed to fetch project")
async def get_project(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    projects: ProjectService = Depends(get_project_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    project = await _owned_project(request, projects, outcome.principal, "view")
    if isinstance(project, Terminal):
        return project
    return success({"project": project.public_view()})


@router.patch("/{project_id}")
@error_boundary("Failed to update project")
async def update_project(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    projects: ProjectService = Depends(get_project_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    body = await validate_body(request, UpdateProjectBody)
    if isinstance(body, Terminal):
        return body

    project = await _owned_project(request, projects, outcome.principal, "update")
    if isinstance(project, Terminal):
        return project

    updated = await projects.update_project(
        project.id,
        name=body.value.name,
        is_active=body.value.is_active,
        settings=body.value.settings,
    )
    return success({"project": updated.public_view()})


@router.delete("/{project_id}")
@error_boundary("Failed to delete project")
async def delete_project(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    projects: ProjectService = Depends(get_project_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    project = await _owned_project(request, projects, outcome.principal, "delete")
    if isinstance(project, Terminal):
        return project

    await projects.delete_project(project.id)
    return success({"deleted": True})


@router.post("/{project_id}/api-key")
@error_boundary("Failed to regenerate API key")
async def regenerate_api_key(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    projects: ProjectService = Depends(get_project_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    project = await _owned_project(request, projects, outcome.principal, "regenerate API key for")
    if isinstance(project, Terminal):
        return project

    api_key = await projects.regenerate_api_key(project.id)
    return success({"api_key": api_key})
