"""
Authentication/authorization failures.

Each failure class knows the HTTP status it ends the request with.
The gate turns them into Terminal results where they are detected.
"""


class AuthError(Exception):
    """Base exception for auth failures."""

    status_code = 401


class MalformedHeaderError(AuthError):
    """Authorization header missing or not of the form "Bearer <token>"."""


class InvalidTokenError(AuthError):
    """Signature, expiry or payload check failed (cause deliberately hidden)."""


class UserNotFoundError(AuthError):
    """Token subject has no persisted user record."""


class UserInactiveError(AuthError):
    """User record exists but is deactivated."""


class InsufficientRoleError(AuthError):
    """Authenticated, but the role does not grant access."""

    status_code = 403


# =============================================================================
# Project credentials
# =============================================================================


class MissingClientIdError(AuthError):
    """No x-client-id header on a project-scoped request."""


class UnknownProjectError(AuthError):
    """x-client-id names no project."""


class InvalidApiKeyError(AuthError):
    """Presented key does not match the project's key."""


class ProjectInactiveError(AuthError):
    """Project exists but is deactivated."""

    status_code = 403


class SecretKeyRequiredError(AuthError):
    """Endpoint needs a secret key; only the client id was presented."""

    status_code = 403


class MissingPermissionError(AuthError):
    status_code = 403
