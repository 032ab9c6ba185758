# =============================================================================
# Admin API Routes
# =============================================================================
#
# Endpoints (admin or superadmin only):
#   GET /api/v1/admin/projects  - All projects, paginated
#   GET /api/v1/admin/users     - All users, paginated
#   GET /api/v1/admin/stats     - System-wide counters
#
# The guard runs before anything else, so a non-admin caller never
# triggers a listing.
#
# =============================================================================

from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import Field

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import ServiceContainer, get_auth_gate, get_container
from one_engine.api.responses import Terminal, paginated, success
from one_engine.api.validation import (
    ActiveFlag,
    ApiModel,
    PaginationQuery,
    parse_flag,
    validate_query,
)
from one_engine.auth import AuthGate, UserRole
from one_engine.core.utils import utc_now
from one_engine.services import InvestmentStatus, OrderStatus

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


class AdminProjectsQuery(PaginationQuery):
    sort_by: Literal["created_at", "updated_at", "name", "slug", "is_active"] | None = None
    search: str | None = None
    is_active: ActiveFlag | None = None


class AdminUsersQuery(PaginationQuery):
    sort_by: Literal["created_at", "updated_at", "email", "role", "is_active"] | None = None
    search: str | None = None
    role: UserRole | None = None


class StatsQuery(ApiModel):
    days: int = Field(default=30, ge=1, le=365)


@router.get("/projects")
@error_boundary("Failed to fetch projects")
async def list_projects(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    container: ServiceContainer = Depends(get_container),
):
    outcome = await gate.require_admin(request)
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, AdminProjectsQuery)
    if isinstance(query, Terminal):
        return query

    result = await container.projects.list_projects(
        query.value.to_params(),
        search=query.value.search,
        is_active=parse_flag(query.value.is_active),
    )
    return paginated(result)


@router.get("/users")
@error_boundary("Failed to fetch users")
async def list_users(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    container: ServiceContainer = Depends(get_container),
):
    outcome = await gate.require_admin(request)
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, AdminUsersQuery)
    if isinstance(query, Terminal):
        return query

    result = await container.users.list_users(
        query.value.to_params(),
        search=query.value.search,
        role=query.value.role,
    )
    return paginated(result)


@router.get("/stats")
@error_boundary("Failed to fetch statistics")
async def stats(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    container: ServiceContainer = Depends(get_container),
):
    outcome = await gate.require_admin(request)
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, StatsQuery)
    if isinstance(query, Terminal):
        return query

    days = query.value.days
    since = utc_now() - timedelta(days=days)
    strategies = await container.quant.list_strategies(active_only=False)

    return success({
        "period_days": days,
        "users": {
            "total": await container.users.count_users(),
            "new": await container.users.count_users(since=since),
        },
        "projects": {
            "total": await container.projects.count_projects(),
            "active": await container.projects.count_projects(is_active=True),
        },
        "ai_quant": {
            "strategies": len(strategies),
            "active_orders": await container.quant.count_orders(OrderStatus.ACTIVE),
            "tvl": sum(s.tvl for s in strategies),
        },
        "forex": {
            "investments": await container.forex.count_investments(),
            "active_investments": await container.forex.count_investments(InvestmentStatus.ACTIVE),
        },
    })
