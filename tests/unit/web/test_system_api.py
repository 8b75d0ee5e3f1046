"""Tests for index, health and IP diagnostics."""

from unittest.mock import AsyncMock

from keygate.errors import StorageError


class TestSystemEndpoints:
    """Tests for system endpoints."""

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["environment"] == "development"

    def test_index_lists_endpoints(self, client):
        body = client.get("/").json()
        assert "POST /api/keys/create" in body["endpoints"]

    def test_ip_report(self, client):
        response = client.get("/ip", headers={"X-Forwarded-For": "10.0.0.5, 8.8.8.8"})
        body = response.json()
        assert body["ip"] == "8.8.8.8"
        assert body["variants"] == {"public_ip": "8.8.8.8", "private_ip": "10.0.0.5"}
        assert body["x_forwarded_for"] == "10.0.0.5, 8.8.8.8"

    def test_repeated_forwarded_for_lines_kept_in_order(self, client):
        """Test that a second X-Forwarded-For line added by a proxy does not hide the first."""
        headers = [("x-forwarded-for", "203.0.113.5"), ("x-forwarded-for", "10.0.0.1")]
        body = client.get("/ip", headers=headers).json()
        assert body["ip"] == "203.0.113.5"
        assert body["x_forwarded_for"] == "203.0.113.5, 10.0.0.1"

    def test_ip_unknown_without_headers(self, client):
        # TestClient's peer is "testclient", which is not an address
        assert client.get("/ip").json()["ip"] == "unknown"

    def test_openapi_marks_public_endpoints(self, client):
        schema = client.get("/openapi.json").json()
        assert schema["paths"]["/api/keys/create"]["post"]["security"] == []
        protected = schema["paths"]["/admin/api/sessions"]["get"]["security"]
        assert {"AdminSessionCookie": []} in protected
        assert "AdminSessionCookie" in schema["components"]["securitySchemes"]


class TestStorageErrors:
    """Tests for storage failure handling."""

    def test_storage_error_is_503(self, client):
        repository = client.app.state.app._core.repository
        repository.fetch = AsyncMock(side_effect=StorageError("disk on fire"))

        response = client.get("/api/keys/info/0b7c9a3e-58f1-4a7c-9d2e-5f0f3b1c2d4e")

        assert response.status_code == 503
        assert response.json() == {"message": "Storage unavailable.", "type": "storage_error"}
