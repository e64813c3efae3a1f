"""Tests for application-level routes, error handling and CORS."""

import pytest
from fastapi.testclient import TestClient

from sitecms.core import settings


@pytest.fixture
def client():
    """Get test client with fresh app instance."""
    from sitecms.main import app

    return TestClient(app, raise_server_exceptions=False)


def test_root(client):
    """Test the root endpoint answers with service information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == settings.app_name
    assert data["version"] == settings.app_version
    assert data["message"] == "Hello im responding to client side!"


def test_unknown_route_returns_json_404(client):
    """Test that unknown routes return a JSON error body."""
    response = client.get("/definitely/not/here")
    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_method_not_allowed_keeps_detail_shape(client):
    """Test that other HTTP errors keep the standard detail body."""
    response = client.put("/admin/login")
    assert response.status_code == 405
    assert "detail" in response.json()


def test_process_time_header(client):
    """Test that every response reports its processing time."""
    response = client.get("/")
    assert float(response.headers["X-Process-Time"]) >= 0


def test_docs_disabled_outside_debug(client):
    """Test that interactive docs are only served in debug mode."""
    if settings.debug:
        pytest.skip("debug mode enabled in this environment")
    assert client.get("/docs").status_code == 404
    assert client.get("/openapi.json").status_code == 404


class TestCORS:
    """Tests for cross-origin access from the dashboard."""

    def test_preflight_from_client_origin(self, client):
        """Test that the configured dashboard origin may send credentials."""
        origin = settings.cors_origins_list[0]
        response = client.options(
            "/admin/login",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_preflight_from_unknown_origin(self, client):
        """Test that other origins are not granted access."""
        response = client.options(
            "/admin/login",
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert "access-control-allow-origin" not in response.headers

    def test_cors_headers_on_unauthorized(self, client):
        """Test that 401 responses still carry CORS headers."""
        origin = settings.cors_origins_list[0]
        response = client.get("/admin/profile", headers={"Origin": origin})
        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == origin
