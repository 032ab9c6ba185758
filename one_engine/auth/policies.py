"""
Policies - the access checks every route starts with.

Three user policies with different failure behavior:

- require_auth:  Granted(principal) or a 401 Terminal
- require_admin: Granted(principal) or a 401/403 Terminal
- optional_auth: Principal or None (anonymous), never a failure

and one tenant policy for server-to-server calls:

- require_project: ProjectGranted(context) or a 401/403 Terminal

Guards return results instead of raising, so handlers read:

    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome
    principal = outcome.principal
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from fastapi import Request

from one_engine.api.responses import Terminal, errors
from one_engine.auth.context import Principal, PrincipalResolver, ProjectContext, ProjectStore
from one_engine.auth.errors import (
    AuthError,
    InsufficientRoleError,
    InvalidApiKeyError,
    MissingClientIdError,
    MissingPermissionError,
    ProjectInactiveError,
    SecretKeyRequiredError,
    UnknownProjectError,
)
from one_engine.auth.roles import ADMIN_ROLES, UserRole
from one_engine.auth.tokens import TokenVerifier, extract_bearer

logger = logging.getLogger(__name__)

# One message for every 401 so callers can't tell causes apart
UNAUTHORIZED_MESSAGE = "Invalid or missing authentication token"
PROJECT_UNAUTHORIZED_MESSAGE = "Invalid or missing project credentials"

CLIENT_ID_HEADER = "x-client-id"
SECRET_KEY_HEADER = "x-secret-key"

FORBIDDEN_MESSAGES: dict[type[AuthError], str] = {
    ProjectInactiveError: "Project is not active",
    SecretKeyRequiredError: "This endpoint requires a secret key",
    MissingPermissionError: "Missing permission for this endpoint",
}


@dataclass(frozen=True)
class Granted:
    """Access allowed; carries the resolved principal."""

    principal: Principal


@dataclass(frozen=True)
class ProjectGranted:
    """Project credentials accepted; carries the tenant context."""

    context: ProjectContext


class AuthGate:
    """
    Token Verifier + Principal Resolver composed into access policies.

    Built once per process and shared by all handlers. Holds no
    per-request state.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        resolver: PrincipalResolver,
        projects: ProjectStore | None = None,
    ):
        self.verifier = verifier
        self.resolver = resolver
        self.projects = projects

    async def authenticate(self, request: Request) -> Principal:
        """
        Header -> token -> verified payload -> principal.

        Raises the AuthError taxonomy. The header is checked before any
        verification or user lookup happens.
        """
        token = extract_bearer(request.headers.get("authorization"))
        payload = self.verifier.verify(token)
        return await self.resolver.resolve(payload)

    async def require_auth(self, request: Request) -> Granted | Terminal:
        try:
            principal = await self.authenticate(request)
        except AuthError as e:
            return self._deny(request, e)
        return Granted(principal)

    async def require_role(self, request: Request, *roles: UserRole) -> Granted | Terminal:
        outcome = await self.require_auth(request)
        if isinstance(outcome, Terminal):
            return outcome

        if outcome.principal.role not in roles:
            return self._deny(
                request,
                InsufficientRoleError(f"Role {outcome.principal.role.value} not in {[r.value for r in roles]}"),
            )
        return outcome

    async def require_admin(self, request: Request) -> Granted | Terminal:
        return await self.require_role(request, *ADMIN_ROLES)

    async def optional_auth(self, request: Request) -> Principal | None:
        try:
            return await self.authenticate(request)
        except AuthError as e:
            logger.debug(f"Anonymous request to {request.url.path}: {type(e).__name__}")
            return None

    # -------------------------------------------------------------------------
    # Project credentials
    # -------------------------------------------------------------------------

    async def authenticate_project(self, request: Request) -> ProjectContext:
        """
        x-client-id [+ secret key] -> project context.

        The key is read from x-secret-key, else from "Bearer <key>".
        Without a key the caller is a publishable, read-only client.
        """
        if self.projects is None:
            raise RuntimeError("AuthGate was built without a project store")

        client_id = request.headers.get(CLIENT_ID_HEADER, "").strip()
        if not client_id:
            raise MissingClientIdError("x-client-id header missing")

        api_key = request.headers.get(SECRET_KEY_HEADER, "").strip()
        if not api_key:
            auth_header = request.headers.get("authorization", "")
            if auth_header.startswith("Bearer "):
                api_key = auth_header[len("Bearer "):].strip()

        project = await self.projects.find_project(client_id)
        if project is None:
            raise UnknownProjectError(f"No project {client_id}")
        if not project.is_active:
            raise ProjectInactiveError(f"Project {project.id} is inactive")

        if not api_key:
            return ProjectContext(project.id, project.owner_id, "publishable", ("read",))
        if not secrets.compare_digest(api_key.encode(), project.api_key.encode()):
            raise InvalidApiKeyError(f"Key mismatch for project {project.id}")
        return ProjectContext(project.id, project.owner_id, "secret", ("*",))

    async def require_project(
        self,
        request: Request,
        require_secret: bool = False,
        permission: str | None = None,
    ) -> ProjectGranted | Terminal:
        try:
            context = await self.authenticate_project(request)
            if require_secret and context.key_type != "secret":
                raise SecretKeyRequiredError(f"Publishable key on {request.url.path}")
            if permission and not context.has_permission(permission):
                raise MissingPermissionError(f"Project {context.project_id} lacks {permission}")
        except AuthError as e:
            return self._deny(request, e, PROJECT_UNAUTHORIZED_MESSAGE)
        return ProjectGranted(context)

    def _deny(
        self,
        request: Request,
        error: AuthError,
        unauthorized_message: str = UNAUTHORIZED_MESSAGE,
    ) -> Terminal:
        logger.info(f"Access denied on {request.method} {request.url.path}: {type(error).__name__}: {error}")
        if error.status_code == 403:
            return errors.forbidden(FORBIDDEN_MESSAGES.get(type(error), "Insufficient permissions"))
        return errors.unauthorized(unauthorized_message)
