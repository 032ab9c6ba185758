# =============================================================================
# Connect API Routes
# =============================================================================
#
# Endpoints (project credentials, no user token):
#   GET /api/v1/connect/users  - Users scoped to the calling project
#
# Headers:
#   x-client-id:  project id (required)
#   x-secret-key: project API key (optional; also accepted as "Bearer <key>")
#
# A client id alone is a publishable, read-only caller and sees public
# user fields. The secret key adds contact fields.
#
# =============================================================================

from fastapi import APIRouter, Depends, Request

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import get_auth_gate, get_user_service
from one_engine.api.responses import Terminal, paginated
from one_engine.api.validation import PaginationQuery, validate_query
from one_engine.auth import AuthGate
from one_engine.services import UserService

router = APIRouter(prefix="/api/v1/connect", tags=["connect"])


@router.get("/users")
@error_boundary("Failed to fetch users")
async def list_project_users(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    users: UserService = Depends(get_user_service),
):
    outcome = await gate.require_project(request, permission="read")
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, PaginationQuery)
    if isinstance(query, Terminal):
        return query

    context = outcome.context
    result = await users.list_project_users(
        context.project_id,
        query.value.to_params(),
        include_contact=context.key_type == "secret",
    )
    return paginated(result)
