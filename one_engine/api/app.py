"""
FastAPI application for the ONE Engine API.

create_app() wires the service container, middleware, routers and the
exception handlers that keep framework errors in the response envelope.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from one_engine.api.deps import ServiceContainer, build_container
from one_engine.api.responses import ErrorKind, errors
from one_engine.api.routes import ROUTERS
from one_engine.config import configure_logging, get_settings
from one_engine.integrations.sentry import init_sentry

logger = logging.getLogger(__name__)

KIND_BY_STATUS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
}


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    container: ServiceContainer = app.state.container
    settings = container.settings

    configure_logging(settings)
    init_sentry(settings)
    await container.quant.seed_strategies()

    logger.info(f"ONE Engine API starting in {settings.environment} mode")
    yield
    logger.info("ONE Engine API shutting down")


# =============================================================================
# Request logging
# =============================================================================

REQUEST_ID_HEADER = "x-request-id"


async def log_requests(request: Request, call_next):
    """Tag each request with an id and log method, path, status and duration."""
    request_id = request.headers.get(REQUEST_ID_HEADER, "").strip() or uuid.uuid4().hex
    request.state.request_id = request_id
    start = time.monotonic()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.error(f"[{request_id}] {request.method} {request.url.path} failed after {duration_ms}ms")
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    response.headers[REQUEST_ID_HEADER] = request_id
    level = logging.WARNING if response.status_code >= 400 else logging.INFO
    logger.log(
        level,
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)",
    )
    return response


# =============================================================================
# Exception handlers
# =============================================================================


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return errors.bad_request("Validation failed", details).to_response()


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 405 has no row in the status table; it is reported as a bad request
    if exc.status_code == 405:
        return errors.bad_request("Method not allowed").to_response()

    kind = KIND_BY_STATUS.get(exc.status_code, ErrorKind.INTERNAL)
    if kind is ErrorKind.NOT_FOUND:
        return errors.not_found("Route").to_response()
    return errors.for_kind(kind, str(exc.detail)).to_response()


# =============================================================================
# App Setup
# =============================================================================


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    container = container or build_container(get_settings())
    settings = container.settings

    app = FastAPI(
        title="ONE Engine API",
        description="Multi-tenant API for projects, AI quant strategies and forex investments",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.container = container

    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)

    for router in ROUTERS:
        app.include_router(router)

    return app
