"""
Authentication and authorization for every route.

Design principles:
1. Guards return results (Granted | Terminal), they never throw responses
2. Role comes from the persisted user, never from the token alone
3. Fail closed for require_*, fail open to anonymous only for optional_auth
4. Project credentials (client id + secret key) resolve to a tenant context
"""

from one_engine.auth.context import (
    Principal,
    PrincipalResolver,
    ProjectContext,
    ProjectRecord,
    ProjectStore,
    UserRecord,
    UserStore,
)
from one_engine.auth.errors import (
    AuthError,
    InsufficientRoleError,
    InvalidApiKeyError,
    InvalidTokenError,
    MalformedHeaderError,
    ProjectInactiveError,
    UserInactiveError,
    UserNotFoundError,
)
from one_engine.auth.policies import AuthGate, Granted, ProjectGranted
from one_engine.auth.roles import ADMIN_ROLES, UserRole
from one_engine.auth.tokens import (
    TokenPayload,
    TokenVerifier,
    create_access_token,
    extract_bearer,
)

__all__ = [
    # Main interface
    "AuthGate",
    "Granted",
    "ProjectGranted",
    "Principal",
    "PrincipalResolver",
    "ProjectContext",
    # Types
    "UserRecord",
    "UserStore",
    "ProjectRecord",
    "ProjectStore",
    "UserRole",
    "ADMIN_ROLES",
    # Tokens
    "TokenPayload",
    "TokenVerifier",
    "create_access_token",
    "extract_bearer",
    # Errors
    "AuthError",
    "InsufficientRoleError",
    "InvalidApiKeyError",
    "InvalidTokenError",
    "MalformedHeaderError",
    "ProjectInactiveError",
    "UserInactiveError",
    "UserNotFoundError",
]
