"""Integration tests for the users API against a real database."""

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from user_directory.main import create_app


@pytest.fixture
def test_client():
    """Test client whose lifespan opens and closes the database pool."""
    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def created_users(test_client):
    """Five fresh users, removed again afterwards."""
    tag = uuid4().hex[:8]
    ids = []
    for i in range(5):
        response = test_client.post("/v1/users", json={
            "username": f"it-{tag}-{i}",
            "email": f"it-{tag}-{i}@example.com",
            "firstName": f"User {i}"
        })
        assert response.status_code == 201, response.text
        ids.append(response.json()["id"])

    yield ids

    for user_id in ids:
        test_client.delete(f"/v1/users/{user_id}")


def walk_forward(client, order, limit):
    pages = []
    params = {"limit": limit, "order": order}
    while True:
        response = client.get("/v1/users/cursor", params=params)
        assert response.status_code == 200, response.text
        body = response.json()
        pages.append(body)
        after = body["pagination"]["afterCursor"]
        if after is None:
            return pages
        params = {"limit": limit, "order": order, "afterCursor": after}


class TestUsersCursorAPI:
    """Cursor traversal over the users table."""

    @pytest.mark.parametrize("order", ["asc", "desc"])
    def test_forward_traversal_visits_every_user_once(self, test_client, created_users, order):
        pages = walk_forward(test_client, order, limit=2)
        seen = [user["id"] for page in pages for user in page["data"]]

        assert len(seen) == len(set(seen))
        assert set(created_users) <= set(seen)
        keys = [UUID(user_id) for user_id in seen]
        assert keys == sorted(keys, reverse=order == "desc")
        assert pages[0]["pagination"]["beforeCursor"] is None
        assert pages[0]["pagination"]["totalRecords"] == len(seen)

    def test_backward_traversal_returns_previous_page(self, test_client, created_users):
        pages = walk_forward(test_client, "asc", limit=2)
        if len(pages) < 2:
            pytest.skip("Need at least two pages")

        before = pages[1]["pagination"]["beforeCursor"]
        response = test_client.get("/v1/users/cursor", params={"limit": 2, "order": "asc", "beforeCursor": before})

        assert response.status_code == 200
        assert response.json()["data"] == pages[0]["data"]

    def test_link_header(self, test_client, created_users):
        response = test_client.get("/v1/users/cursor", params={"limit": 1})

        assert 'rel="next"' in response.headers["link"]

    def test_both_cursors_rejected(self, test_client, created_users):
        page = test_client.get("/v1/users/cursor", params={"limit": 1}).json()
        cursor = page["pagination"]["afterCursor"]

        response = test_client.get(
            "/v1/users/cursor",
            params={"afterCursor": cursor, "beforeCursor": cursor}
        )

        assert response.status_code == 400

    def test_malformed_cursor_rejected(self, test_client):
        response = test_client.get("/v1/users/cursor", params={"afterCursor": "garbage"})

        assert response.status_code == 400
        assert response.headers["content-type"] == "application/problem+json"


class TestUsersCrudAPI:
    """Create, update and delete round trips."""

    def test_duplicate_email_conflicts(self, test_client, created_users):
        existing = test_client.get(f"/v1/users/{created_users[0]}").json()

        response = test_client.post("/v1/users", json={
            "username": f"dup-{uuid4().hex[:8]}",
            "email": existing["email"]
        })

        assert response.status_code == 409

    def test_update_and_delete(self, test_client, created_users):
        user_id = created_users[0]

        response = test_client.patch(f"/v1/users/{user_id}", json={"bio": "Analyst"})
        assert response.status_code == 200
        assert response.json()["bio"] == "Analyst"

        assert test_client.delete(f"/v1/users/{user_id}").status_code == 204
        assert test_client.get(f"/v1/users/{user_id}").status_code == 404
        assert test_client.delete(f"/v1/users/{user_id}").status_code == 404

    def test_offset_listing(self, test_client, created_users):
        response = test_client.get("/v1/users", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"]["currentPage"] == 1
        assert body["pagination"]["totalRecords"] >= 5
