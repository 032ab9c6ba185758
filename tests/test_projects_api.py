"""
End-to-end tests for the project routes.
"""

from unittest.mock import AsyncMock

from one_engine.api.responses import ErrorCodes


def create(client, auth_header, slug="acme", user_id="user_active", **extra):
    return client.post(
        "/api/v1/projects",
        json={"name": "Acme", "slug": slug, **extra},
        headers=auth_header(user_id),
    )


# =============================================================================
# Authentication
# =============================================================================


class TestProjectAuth:
    def test_list_without_header(self, client, container):
        container.projects.get_user_projects = AsyncMock()

        response = client.get("/api/v1/projects")
        body = response.json()

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert body["success"] is False
        assert body["error"]["code"] == ErrorCodes.UNAUTHORIZED
        container.projects.get_user_projects.assert_not_awaited()

    def test_inactive_user(self, client, auth_header):
        response = client.get("/api/v1/projects", headers=auth_header("user_inactive"))
        assert response.status_code == 401


# =============================================================================
# Create / list
# =============================================================================


class TestCreateProject:
    def test_create(self, client, auth_header):
        response = create(client, auth_header, settings={"theme": "dark"})
        project = response.json()["data"]["project"]

        assert response.status_code == 201
        assert project["slug"] == "acme"
        assert project["owner_id"] == "user_active"
        assert project["api_key"].startswith("one_pk_")
        assert project["settings"] == {"theme": "dark"}

    def test_bad_slug_rejected_and_nothing_created(self, client, auth_header, container):
        response = create(client, auth_header, slug="ACME!")
        body = response.json()

        assert response.status_code == 400
        assert body["error"]["code"] == ErrorCodes.VALIDATION_ERROR
        assert [d["field"] for d in body["error"]["details"]] == ["slug"]
        assert client.portal.call(container.projects.count_projects) == 0

    def test_duplicate_slug_conflicts(self, client, auth_header):
        create(client, auth_header)
        response = create(client, auth_header, user_id="user_other")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == ErrorCodes.ALREADY_EXISTS

    def test_invalid_json(self, client, auth_header):
        response = client.post(
            "/api/v1/projects",
            content=b"{oops",
            headers={**auth_header(), "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCodes.INVALID_INPUT

    def test_list_only_own_projects(self, client, auth_header):
        create(client, auth_header, slug="mine")
        create(client, auth_header, slug="theirs", user_id="user_other")

        data = client.get("/api/v1/projects", headers=auth_header()).json()["data"]

        assert data["total"] == 1
        assert data["projects"][0]["slug"] == "mine"
        assert "api_key" not in data["projects"][0]
        assert data["projects"][0]["api_key_preview"].endswith("...")

    def test_list_filter(self, client, auth_header):
        project_id = create(client, auth_header).json()["data"]["project"]["id"]
        client.patch(f"/api/v1/projects/{project_id}", json={"isActive": False}, headers=auth_header())

        active = client.get("/api/v1/projects?isActive=true", headers=auth_header()).json()["data"]
        inactive = client.get("/api/v1/projects?isActive=false", headers=auth_header()).json()["data"]
        assert (active["total"], inactive["total"]) == (0, 1)

    def test_list_bad_flag(self, client, auth_header):
        response = client.get("/api/v1/projects?isActive=maybe", headers=auth_header())

        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "isActive"


# =============================================================================
# Single project
# =============================================================================


class TestProjectDetail:
    def test_owner_can_read_update_delete(self, client, auth_header):
        project_id = create(client, auth_header).json()["data"]["project"]["id"]

        assert client.get(f"/api/v1/projects/{project_id}", headers=auth_header()).status_code == 200

        updated = client.patch(
            f"/api/v1/projects/{project_id}",
            json={"name": "Acme Corp", "settings": {"a": 1}},
            headers=auth_header(),
        ).json()["data"]["project"]
        assert updated["name"] == "Acme Corp"
        assert updated["settings"] == {"a": 1}

        deleted = client.delete(f"/api/v1/projects/{project_id}", headers=auth_header())
        assert deleted.json()["data"] == {"deleted": True}
        assert client.get(f"/api/v1/projects/{project_id}", headers=auth_header()).status_code == 404

    def test_other_user_forbidden(self, client, auth_header):
        project_id = create(client, auth_header).json()["data"]["project"]["id"]

        for method in ("get", "patch", "delete"):
            kwargs = {"json": {"name": "x"}} if method == "patch" else {}
            response = getattr(client, method)(
                f"/api/v1/projects/{project_id}", headers=auth_header("user_other"), **kwargs
            )
            assert response.status_code == 403

    def test_missing_project(self, client, auth_header):
        response = client.get("/api/v1/projects/proj_missing", headers=auth_header())

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Project not found"

    def test_regenerate_api_key(self, client, auth_header):
        project = create(client, auth_header).json()["data"]["project"]

        response = client.post(f"/api/v1/projects/{project['id']}/api-key", headers=auth_header())
        new_key = response.json()["data"]["api_key"]

        assert response.status_code == 200
        assert new_key.startswith("one_pk_")
        assert new_key != project["api_key"]


# =============================================================================
# Error boundary
# =============================================================================


class TestErrorBoundary:
    def test_unexpected_error_is_generic(self, client, auth_header, container):
        container.projects.get_user_projects = AsyncMock(side_effect=RuntimeError("db password=hunter2"))

        response = client.get("/api/v1/projects", headers=auth_header())
        body = response.json()

        assert response.status_code == 500
        assert body["error"]["code"] == ErrorCodes.INTERNAL_ERROR
        assert body["error"]["message"] == "Failed to fetch projects"
        assert "hunter2" not in response.text

    def test_debug_details_when_enabled(self, client, auth_header, container):
        container.settings = container.settings.model_copy(update={"expose_error_details": True})
        container.projects.get_user_projects = AsyncMock(side_effect=RuntimeError("boom"))

        body = client.get("/api/v1/projects", headers=auth_header()).json()

        assert body["error"]["message"] == "Failed to fetch projects"
        assert body["error"]["details"] == {"debug": "boom"}
