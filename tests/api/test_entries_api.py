"""
API tests for portfolio entry endpoints.

Tests cover:
- Create entry with explicit and projected targets
- List entries newest first
- Update (variance recomputed) and delete
- Ownership (403), missing rows (404), validation (400, 422)
"""

import pytest
from fastapi.testclient import TestClient

from tests.conftest import user_headers


def create_entry(client: TestClient, user_id: str = "user-1", **payload) -> dict:
    response = client.post("/entries", json=payload, headers=user_headers(user_id))
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# CREATE TESTS
# =============================================================================


class TestCreateEntryAPI:
    """Tests for POST /entries."""

    def test_create_with_target(self, client: TestClient):
        """
        GIVEN a signed-in user
        WHEN I POST an amount with a target
        THEN response is 201 with the variance snapshot
        """
        data = create_entry(client, amount=5500, target=5000)

        assert data["amount"] == 5500.0
        assert data["target"] == 5000.0
        assert data["variance"] == 500.0
        assert data["variance_percentage"] == pytest.approx(10.0)
        assert data["id"]
        assert data["created_at"] is not None

    def test_create_without_target_uses_default_projection(self, client: TestClient):
        """
        GIVEN no stored inputs and an entry five months after the baseline
        WHEN I POST without a target
        THEN the target is the one-year projection of the defaults
        """
        data = create_entry(client, amount=6500, created_at="2024-06-15T14:30:00Z")

        assert data["target"] == 6000.0
        assert data["variance"] == 500.0

    def test_create_without_target_uses_stored_inputs(self, client: TestClient):
        client.put("/preferences", json={"inputs": {"monthly_amount": 1000}}, headers=user_headers())

        data = create_entry(client, amount=13000, created_at="2024-06-15T14:30:00Z")

        assert data["target"] == 12000.0
        assert data["variance"] == 1000.0

    def test_create_before_baseline_targets_starting_amount(self, client: TestClient):
        client.put("/preferences", json={"inputs": {"starting_amount": 2000}}, headers=user_headers())

        data = create_entry(client, amount=2100, created_at="2023-12-01T00:00:00Z")

        assert data["target"] == 2000.0

    def test_client_supplied_id_is_kept(self, client: TestClient):
        data = create_entry(client, id="entry-42", amount=100, target=100)

        assert data["id"] == "entry-42"

    def test_non_positive_amount_returns_400(self, client: TestClient):
        response = client.post("/entries", json={"amount": 0, "target": 100}, headers=user_headers())

        assert response.status_code == 400
        assert response.json()["message"] == "Please enter a valid amount"

    def test_missing_amount_returns_422(self, client: TestClient):
        response = client.post("/entries", json={"target": 100}, headers=user_headers())

        assert response.status_code == 422

    def test_anonymous_returns_401(self, client: TestClient):
        response = client.post("/entries", json={"amount": 100, "target": 100})

        assert response.status_code == 401


# =============================================================================
# LIST TESTS
# =============================================================================


class TestListEntriesAPI:
    """Tests for GET /entries."""

    def test_list_newest_first_and_scoped_to_user(self, client: TestClient):
        create_entry(client, id="old", amount=100, target=100, created_at="2024-01-05T00:00:00Z")
        create_entry(client, id="new", amount=100, target=100, created_at="2024-03-05T00:00:00Z")
        create_entry(client, "user-2", id="other", amount=100, target=100)

        response = client.get("/entries", headers=user_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [e["id"] for e in data["entries"]] == ["new", "old"]

    def test_empty_list(self, client: TestClient):
        response = client.get("/entries", headers=user_headers())

        assert response.json() == {"entries": [], "count": 0}


# =============================================================================
# UPDATE / DELETE TESTS
# =============================================================================


class TestUpdateDeleteEntryAPI:
    """Tests for PUT and DELETE /entries/{id}."""

    def test_update_recomputes_variance(self, client: TestClient):
        created = create_entry(client, amount=5500, target=5000, created_at="2024-02-01T00:00:00Z")

        response = client.put(
            f"/entries/{created['id']}",
            json={"amount": 4000, "target": 5000},
            headers=user_headers(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["variance"] == -1000.0
        assert data["variance_percentage"] == pytest.approx(-20.0)
        assert data["created_at"].startswith("2024-02-01")

    def test_update_foreign_entry_returns_403(self, client: TestClient):
        """
        GIVEN an entry owned by user-1
        WHEN user-2 tries to update it
        THEN response is 403 and the entry is unchanged
        """
        created = create_entry(client, amount=5500, target=5000)

        response = client.put(
            f"/entries/{created['id']}",
            json={"amount": 1, "target": 1},
            headers=user_headers("user-2"),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "IDENTITY_MISMATCH"
        entries = client.get("/entries", headers=user_headers()).json()["entries"]
        assert entries[0]["amount"] == 5500.0

    def test_update_missing_entry_returns_404(self, client: TestClient):
        response = client.put("/entries/missing", json={"amount": 1, "target": 1}, headers=user_headers())

        assert response.status_code == 404

    def test_delete(self, client: TestClient):
        created = create_entry(client, amount=5500, target=5000)

        response = client.delete(f"/entries/{created['id']}", headers=user_headers())

        assert response.status_code == 204
        assert client.get("/entries", headers=user_headers()).json()["count"] == 0

    def test_delete_foreign_entry_returns_403(self, client: TestClient):
        created = create_entry(client, amount=5500, target=5000)

        response = client.delete(f"/entries/{created['id']}", headers=user_headers("user-2"))

        assert response.status_code == 403
