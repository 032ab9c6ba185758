"""
Shared fixtures.

Every test gets its own container (in-memory storage, fresh services), so
nothing leaks between tests.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from starlette.requests import Request

from one_engine.api.app import create_app
from one_engine.api.deps import ServiceContainer, build_container
from one_engine.auth import UserRole, create_access_token
from one_engine.config import Settings
from one_engine.services import UserService

TEST_SECRET = "test-secret-key-for-one-engine-0123456789"

# user_id -> (email, role, is_active)
SEED_USERS = {
    "user_active": ("user@example.com", UserRole.USER, True),
    "user_other": ("other@example.com", UserRole.USER, True),
    "user_admin": ("admin@example.com", UserRole.ADMIN, True),
    "user_inactive": ("inactive@example.com", UserRole.USER, False),
}


async def seed_users(users: UserService) -> None:
    for user_id, (email, role, is_active) in SEED_USERS.items():
        await users.create_user(email, role=role, is_active=is_active, user_id=user_id)


def make_request(headers: dict[str, str] | None = None, query: str = "", body: bytes = b"") -> Request:
    """A bare Starlette request for exercising guards and validators directly."""
    scope = {
        "type": "http",
        "method": "POST" if body else "GET",
        "path": "/api/v1/test",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "query_string": query.encode(),
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret_key=TEST_SECRET,
        jwt_previous_secret_keys="",
        sentry_dsn="",
        expose_error_details=False,
    )


@pytest.fixture
def container(settings) -> ServiceContainer:
    return build_container(settings)


@pytest_asyncio.fixture
async def seeded(container) -> ServiceContainer:
    """Container with the standard users already stored."""
    await seed_users(container.users)
    return container


@pytest.fixture
def make_token(settings):
    def _make(user_id: str = "user_active", role: str = "user", **kwargs) -> str:
        return create_access_token(settings, user_id=user_id, role=role, **kwargs)
    return _make


@pytest.fixture
def auth_header(make_token):
    def _header(user_id: str = "user_active", **kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}
    return _header


@pytest.fixture
def client(container):
    """TestClient over a fresh app; lifespan runs, users are seeded."""
    app = create_app(container)
    with TestClient(app) as test_client:
        test_client.portal.call(seed_users, container.users)
        yield test_client


@pytest.fixture
def build_request():
    return make_request
