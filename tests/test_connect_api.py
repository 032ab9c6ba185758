"""
End-to-end tests for project-credential routes.
"""

from functools import partial

import pytest

from one_engine.api.responses import ErrorCodes


@pytest.fixture
def project(client, auth_header, container):
    """A project with two scoped users and one user outside it."""
    response = client.post(
        "/api/v1/projects",
        json={"name": "Acme", "slug": "acme"},
        headers=auth_header("user_active"),
    )
    project = response.json()["data"]["project"]

    for email in ("a@acme.io", "b@acme.io"):
        client.portal.call(partial(container.users.create_user, email, project_id=project["id"]))
    client.portal.call(partial(container.users.create_user, "c@elsewhere.io", project_id="proj_other"))
    return project


class TestConnectUsers:
    def test_client_id_only_sees_public_fields(self, client, project):
        response = client.get("/api/v1/connect/users", headers={"x-client-id": project["id"]})
        body = response.json()

        assert response.status_code == 200
        assert body["meta"]["pagination"]["total"] == 2
        assert all("email" not in u for u in body["data"])

    def test_secret_key_sees_contact_fields(self, client, project):
        headers = {"x-client-id": project["id"], "x-secret-key": project["api_key"]}
        body = client.get("/api/v1/connect/users", headers=headers).json()

        assert sorted(u["email"] for u in body["data"]) == ["a@acme.io", "b@acme.io"]

    def test_missing_client_id(self, client, project):
        response = client.get("/api/v1/connect/users", headers={"x-secret-key": project["api_key"]})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == ErrorCodes.UNAUTHORIZED

    def test_wrong_key(self, client, project):
        headers = {"x-client-id": project["id"], "x-secret-key": "one_pk_wrong"}
        assert client.get("/api/v1/connect/users", headers=headers).status_code == 401

    def test_regenerated_key_replaces_old(self, client, project, auth_header):
        old_key = project["api_key"]
        new_key = client.post(
            f"/api/v1/projects/{project['id']}/api-key",
            headers=auth_header("user_active"),
        ).json()["data"]["api_key"]

        old = client.get("/api/v1/connect/users", headers={"x-client-id": project["id"], "x-secret-key": old_key})
        new = client.get("/api/v1/connect/users", headers={"x-client-id": project["id"], "x-secret-key": new_key})

        assert old.status_code == 401
        assert new.status_code == 200

    def test_inactive_project(self, client, project, auth_header):
        client.patch(
            f"/api/v1/projects/{project['id']}",
            json={"isActive": False},
            headers=auth_header("user_active"),
        )

        response = client.get("/api/v1/connect/users", headers={"x-client-id": project["id"]})

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Project is not active"
