"""
Tests for app wiring: health, auth routes, framework errors, Sentry filters.
"""

import logging

from one_engine.api.responses import ErrorCodes
from one_engine.auth import TokenVerifier
from one_engine.config import Settings, get_settings
from one_engine.integrations.sentry import _filter_events, _filter_transactions
from one_engine.main import main


# =============================================================================
# Routes
# =============================================================================


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["services"] == {"storage": "up"}


class TestAuthRoutes:
    def test_me(self, client, auth_header):
        data = client.get("/api/v1/auth/me", headers=auth_header("user_admin")).json()["data"]

        assert data["user_id"] == "user_admin"
        assert data["role"] == "admin"
        assert data["is_admin"] is True

    def test_me_requires_token(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_refresh(self, client, auth_header, settings):
        data = client.post("/api/v1/auth/refresh", headers=auth_header(project_id="proj_1")).json()["data"]
        payload = TokenVerifier.from_settings(settings).verify(data["access_token"])

        assert data["token_type"] == "bearer"
        assert payload.sub == "user_active"
        assert payload.project_id == "proj_1"


class TestFrameworkErrors:
    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/v1/nope")
        body = response.json()

        assert response.status_code == 404
        assert body["success"] is False
        assert body["error"]["code"] == ErrorCodes.NOT_FOUND

    def test_wrong_method(self, client):
        response = client.put("/api/health")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Method not allowed"


class TestRequestLogging:
    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"x-request-id": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get("/api/health")
        assert response.headers.get("x-request-id", "") != ""

    def test_request_logged_with_status(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="one_engine.api.app"):
            client.get("/api/v1/nope", headers={"x-request-id": "req-404"})

        assert any(
            "[req-404] GET /api/v1/nope -> 404" in r.getMessage() and r.levelno == logging.WARNING
            for r in caplog.records
        )


# =============================================================================
# Configuration
# =============================================================================


class TestSettings:
    def test_error_details_never_shown_in_production(self):
        settings = Settings(_env_file=None, environment="production", expose_error_details=True)
        assert settings.show_error_details is False

    def test_cors_origins(self):
        settings = Settings(_env_file=None, cors_origins="https://a.io, https://b.io")
        assert settings.cors_origins_list == ["https://a.io", "https://b.io"]


# =============================================================================
# Sentry filters
# =============================================================================


class TestSentryFilters:
    def test_exception_events_kept(self):
        error = RuntimeError("storage down")
        event = {"exception": {"values": [{"type": "RuntimeError"}]}}

        assert _filter_events(event, {"exc_info": (RuntimeError, error, None)}) is event

    def test_credentials_scrubbed(self):
        event = {"request": {"headers": {"Authorization": "Bearer x", "Accept": "json"}}}
        filtered = _filter_events(event, {})

        assert filtered["request"]["headers"] == {"Authorization": "[Filtered]", "Accept": "json"}

    def test_project_secret_key_scrubbed(self):
        event = {"request": {"headers": {"X-Secret-Key": "one_pk_abc", "X-Client-Id": "proj_1"}}}
        filtered = _filter_events(event, {})

        assert filtered["request"]["headers"] == {"X-Secret-Key": "[Filtered]", "X-Client-Id": "proj_1"}

    def test_health_transactions_dropped(self):
        assert _filter_transactions({"transaction": "/api/health"}, {}) is None
        assert _filter_transactions({"transaction": "/api/v1/projects"}, {}) is not None


# =============================================================================
# CLI
# =============================================================================


class TestCli:
    def test_token_command(self, monkeypatch, capsys):
        monkeypatch.setenv("JWT_SECRET_KEY", "cli-secret-0123456789abcdef0123456789")
        monkeypatch.setenv("ENVIRONMENT", "development")
        get_settings.cache_clear()

        main(["token", "--user-id", "user_cli", "--role", "admin"])
        token = capsys.readouterr().out.strip()

        payload = TokenVerifier(["cli-secret-0123456789abcdef0123456789"]).verify(token)
        assert (payload.sub, payload.role) == ("user_cli", "admin")
        get_settings.cache_clear()
