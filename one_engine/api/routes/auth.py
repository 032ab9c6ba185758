# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   GET  /api/v1/auth/me       - Current principal
#   POST /api/v1/auth/refresh  - Fresh access token for the caller
#
# Login and registration belong to the identity provider in front of this
# service; these routes only work with tokens it has already issued.
#
# =============================================================================

from datetime import timedelta

from fastapi import APIRouter, Depends, Request

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import get_auth_gate, get_settings_dep
from one_engine.api.responses import Terminal, success
from one_engine.auth import AuthGate, create_access_token
from one_engine.config import Settings
from one_engine.integrations.sentry import set_user

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.get("/me")
@error_boundary("Failed to fetch current user")
async def me(request: Request, gate: AuthGate = Depends(get_auth_gate)):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    principal = outcome.principal
    set_user(principal.user_id, principal.role.value)
    return success({**principal.public_view(), "is_admin": principal.is_admin})


@router.post("/refresh")
@error_boundary("Failed to refresh token")
async def refresh(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    settings: Settings = Depends(get_settings_dep),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    principal = outcome.principal
    expires = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    token = create_access_token(
        settings,
        user_id=principal.user_id,
        role=principal.role.value,
        project_id=principal.project_id,
        email=principal.email,
        expires_delta=expires,
    )
    return success({
        "access_token": token,
        "token_type": "bearer",
        "expires_in": int(expires.total_seconds()),
    })
