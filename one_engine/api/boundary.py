"""
Handler error boundary.

Every route handler is wrapped with @error_boundary("Failed to ..."):

- a returned Terminal is rendered as-is
- a DomainError maps through the fixed status table
- anything else is logged, reported, and answered with a generic 500
  carrying the handler's message (never the raw exception text)
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response

from one_engine.api.responses import Terminal, errors
from one_engine.integrations.sentry import capture_exception
from one_engine.services.errors import DomainError

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


def _find_request(args: tuple, kwargs: dict) -> Request | None:
    if isinstance(kwargs.get("request"), Request):
        return kwargs["request"]
    return next((a for a in args if isinstance(a, Request)), None)


def _show_details(request: Request | None) -> bool:
    if request is None:
        return False
    container = getattr(request.app.state, "container", None)
    return bool(container and container.settings.show_error_details)


def error_boundary(message: str) -> Callable[[Handler], Handler]:
    def decorator(func: Handler) -> Handler:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Response:
            request = _find_request(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except DomainError as e:
                logger.info(f"{func.__name__}: {type(e).__name__}: {e}")
                return errors.for_kind(e.kind, str(e), code=e.code).to_response()
            except Exception as e:
                logger.exception(f"{message} ({func.__name__})")
                request_id = getattr(request.state, "request_id", None) if request else None
                capture_exception(e, handler=func.__name__, request_id=request_id)
                debug = str(e) if _show_details(request) else None
                return errors.internal(message, debug=debug).to_response()

            if isinstance(result, Terminal):
                return result.to_response()
            return result

        return wrapper

    return decorator
