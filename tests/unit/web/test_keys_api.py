"""Tests for the public key endpoints."""

from uuid import uuid4

import pytest


def create_key(client, owner_id="owner-1", ttl_hours=5, **headers):
    response = client.post("/api/keys/create", json={"owner_id": owner_id, "ttl_hours": ttl_hours}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateKey:
    """Tests for POST /api/keys/create."""

    def test_create_returns_key(self, client):
        body = create_key(client)
        assert body["owner_id"] == "owner-1"
        assert body["status"] == "active"
        assert body["valid"] is True
        assert body["remaining"]["formatted"] == "5h 0m"

    def test_default_ttl_is_24_hours(self, client):
        response = client.post("/api/keys/create", json={"owner_id": "owner-1"})
        assert response.status_code == 201
        assert response.json()["remaining"]["hours"] == 24

    @pytest.mark.parametrize("ttl_hours", [0, -3, 0.5, 721])
    def test_invalid_ttl(self, client, ttl_hours):
        response = client.post("/api/keys/create", json={"owner_id": "owner-1", "ttl_hours": ttl_hours})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"
        assert client.get("/api/keys/user/owner-1").json()["count"] == 0

    @pytest.mark.parametrize("ttl_hours", [True, "5", None, [1]])
    def test_non_numeric_ttl_rejected(self, client, ttl_hours):
        """Test that JSON booleans and strings are not coerced into a TTL."""
        response = client.post("/api/keys/create", json={"owner_id": "owner-1", "ttl_hours": ttl_hours})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"
        assert "ttl_hours" in response.json()["message"]
        assert client.get("/api/keys/user/owner-1").json()["count"] == 0

    def test_missing_owner_is_validation_error(self, client):
        response = client.post("/api/keys/create", json={"ttl_hours": 2})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_owner_id_sanitized(self, client):
        body = create_key(client, owner_id="  <owner>'x'  ")
        assert body["owner_id"] == "ownerx"

    def test_blank_owner_rejected(self, client):
        response = client.post("/api/keys/create", json={"owner_id": " <> ", "ttl_hours": 1})
        assert response.status_code == 400


class TestValidateKey:
    """Tests for GET /api/keys/validate/{key_id}."""

    def test_valid(self, client):
        key_id = create_key(client)["key_id"]
        response = client.get(f"/api/keys/validate/{key_id}")
        assert response.status_code == 200
        assert response.json() == {"key_id": key_id, "outcome": "valid", "valid": True}

    def test_expired(self, client, clock):
        key_id = create_key(client, ttl_hours=1)["key_id"]
        clock.advance(hours=1, minutes=1)
        response = client.get(f"/api/keys/validate/{key_id}")
        assert response.status_code == 200
        assert response.json()["outcome"] == "expired"
        assert response.json()["valid"] is False

    def test_not_found(self, client):
        key_id = str(uuid4())
        response = client.get(f"/api/keys/validate/{key_id}")
        assert response.status_code == 404
        assert response.json()["outcome"] == "not_found"

    def test_malformed_id(self, client):
        response = client.get("/api/keys/validate/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid key ID format"


class TestKeyInfoAndList:
    """Tests for key info and owner listing."""

    def test_info(self, client, clock):
        created = create_key(client, ttl_hours=2)
        clock.advance(minutes=30)
        body = client.get(f"/api/keys/info/{created['key_id']}").json()
        assert body["key_id"] == created["key_id"]
        assert body["remaining"]["formatted"] == "1h 30m"

    def test_info_not_found(self, client):
        response = client.get(f"/api/keys/info/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_list_by_owner(self, client):
        first = create_key(client, owner_id="alice")
        second = create_key(client, owner_id="alice")
        create_key(client, owner_id="bob")

        body = client.get("/api/keys/user/alice").json()
        assert body["count"] == 2
        assert [k["key_id"] for k in body["keys"]] == [first["key_id"], second["key_id"]]


class TestDeleteKey:
    """Tests for DELETE /api/keys/{key_id}."""

    def test_delete_then_validate(self, client):
        key_id = create_key(client)["key_id"]
        assert client.delete(f"/api/keys/{key_id}").status_code == 204
        assert client.get(f"/api/keys/validate/{key_id}").json()["outcome"] == "not_found"

    def test_second_delete_not_found(self, client):
        key_id = create_key(client)["key_id"]
        client.delete(f"/api/keys/{key_id}")
        response = client.delete(f"/api/keys/{key_id}")
        assert response.status_code == 404
