"""
Domain errors raised by services.

Each class is bound to one response kind; the handler error boundary
maps them through the fixed status table.
"""

from one_engine.api.responses import ErrorCodes, ErrorKind


class DomainError(Exception):
    """Base class for expected business failures."""

    kind: ErrorKind = ErrorKind.BAD_REQUEST
    code: str | None = None


class DomainValidationError(DomainError):
    """Input passed the schema but breaks a business rule."""


class InvalidStateError(DomainError):
    """Operation not allowed in the resource's current state."""


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class PermissionDeniedError(DomainError):
    kind = ErrorKind.FORBIDDEN


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT


class AlreadyExistsError(ConflictError):
    """A unique field (slug, email) is already taken."""

    code = ErrorCodes.ALREADY_EXISTS
