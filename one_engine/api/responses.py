"""
Response envelope helpers.

Every endpoint answers with one wire format:

    {"success": true,  "data": ...,                      "meta": {"timestamp": ...}}
    {"success": false, "error": {"code", "message", ...}, "meta": {"timestamp": ...}}

Failures are first built as a Terminal (status + body). Guards and
validators hand Terminals back to handlers, handlers return them, and the
error boundary renders them. Status codes only come from STATUS_BY_KIND.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from one_engine.core.utils import utc_now


# =============================================================================
# Error codes and the fixed status table
# =============================================================================


class ErrorCodes:
    """Stable machine-readable error codes."""

    # Auth (1xxx)
    UNAUTHORIZED = "E1001"
    FORBIDDEN = "E1004"

    # Validation (2xxx)
    VALIDATION_ERROR = "E2001"
    INVALID_INPUT = "E2002"

    # Resources (3xxx)
    NOT_FOUND = "E3001"
    ALREADY_EXISTS = "E3002"
    CONFLICT = "E3003"

    # Server (9xxx)
    INTERNAL_ERROR = "E9001"


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}

CODE_BY_KIND: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: ErrorCodes.VALIDATION_ERROR,
    ErrorKind.UNAUTHORIZED: ErrorCodes.UNAUTHORIZED,
    ErrorKind.FORBIDDEN: ErrorCodes.FORBIDDEN,
    ErrorKind.NOT_FOUND: ErrorCodes.NOT_FOUND,
    ErrorKind.CONFLICT: ErrorCodes.CONFLICT,
    ErrorKind.INTERNAL: ErrorCodes.INTERNAL_ERROR,
}


def _meta(**extra: Any) -> dict[str, Any]:
    return {"timestamp": utc_now().isoformat(), **extra}


def error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    return {"success": False, "error": error, "meta": _meta()}


# =============================================================================
# Terminal - a finished response that ends the request
# =============================================================================


@dataclass(frozen=True)
class Terminal:
    """
    A fully formed error response.

    Returned (never raised) by guards and validators. Handlers pass it
    through unchanged.
    """

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        message: str,
        details: Any = None,
        code: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Terminal:
        return cls(
            status_code=STATUS_BY_KIND[kind],
            body=error_body(code or CODE_BY_KIND[kind], message, details),
            headers=headers or {},
        )

    @property
    def error_code(self) -> str:
        return self.body["error"]["code"]

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.body,
            headers=self.headers or None,
        )


class ErrorResponses:
    """Named constructors for the fixed error table."""

    @staticmethod
    def bad_request(
        message: str,
        details: Any = None,
        code: str = ErrorCodes.VALIDATION_ERROR,
    ) -> Terminal:
        return Terminal.of(ErrorKind.BAD_REQUEST, message, details, code=code)

    @staticmethod
    def unauthorized(message: str = "Authentication required") -> Terminal:
        return Terminal.of(
            ErrorKind.UNAUTHORIZED,
            message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(message: str = "Access denied") -> Terminal:
        return Terminal.of(ErrorKind.FORBIDDEN, message)

    @staticmethod
    def not_found(resource: str = "Resource") -> Terminal:
        return Terminal.of(ErrorKind.NOT_FOUND, f"{resource} not found")

    @staticmethod
    def conflict(message: str, code: str = ErrorCodes.CONFLICT) -> Terminal:
        return Terminal.of(ErrorKind.CONFLICT, message, code=code)

    @staticmethod
    def internal(message: str = "Internal server error", debug: str | None = None) -> Terminal:
        """
        Generic 500.

        `message` is the summary clients see and must not carry raw error
        text. `debug` lands in details.debug, kept apart from the summary.
        """
        details = {"debug": debug} if debug else None
        return Terminal.of(ErrorKind.INTERNAL, message, details)

    @staticmethod
    def for_kind(kind: ErrorKind, message: str, details: Any = None, code: str | None = None) -> Terminal:
        if kind is ErrorKind.INTERNAL:
            return ErrorResponses.internal()
        if kind is ErrorKind.UNAUTHORIZED:
            return ErrorResponses.unauthorized(message)
        return Terminal.of(kind, message, details, code=code)


errors = ErrorResponses()


# =============================================================================
# Success
# =============================================================================


def success(data: Any, status_code: int = 200) -> JSONResponse:
    """Wrap payload data in the success envelope (201 for creations)."""
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": jsonable_encoder(data), "meta": _meta()},
    )


def paginated(result: dict[str, Any]) -> JSONResponse:
    """
    Success envelope for a page of items.

    Takes the output of pagination.create_pagination_result(); the items
    become `data` and the counters go to meta.pagination.
    """
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "data": jsonable_encoder(result["items"]),
            "meta": _meta(pagination=result["pagination"]),
        },
    )


# =============================================================================
# Legacy convention (deprecated)
# =============================================================================
#
# Older route families answered with api_response()/api_error(). Both now
# emit the canonical envelope so no endpoint can produce a second shape.


def _kind_for_code(code: str) -> ErrorKind:
    if code == ErrorCodes.FORBIDDEN:
        return ErrorKind.FORBIDDEN
    if code.startswith("E1"):
        return ErrorKind.UNAUTHORIZED
    if code.startswith("E2"):
        return ErrorKind.BAD_REQUEST
    if code == ErrorCodes.NOT_FOUND:
        return ErrorKind.NOT_FOUND
    if code.startswith("E3"):
        return ErrorKind.CONFLICT
    return ErrorKind.INTERNAL


def api_response(data: Any) -> JSONResponse:
    """Deprecated: use success()."""
    warnings.warn("api_response() is deprecated, use success()", DeprecationWarning, stacklevel=2)
    return success(data)


def api_error(code: str, message: str, detail: Any = None) -> Terminal:
    """
    Deprecated: use errors.*.

    The status comes from the code family. Detail is dropped for 500-class
    codes because it usually carries raw provider/service error text.
    """
    warnings.warn("api_error() is deprecated, use errors.*", DeprecationWarning, stacklevel=2)
    kind = _kind_for_code(code)
    if kind is ErrorKind.INTERNAL:
        return Terminal.of(kind, message, code=code)
    return Terminal.of(kind, message, detail, code=code)
