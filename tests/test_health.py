"""Tests for health check endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestHealthEndpoints:
    """Test suite for health check functionality."""

    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    async def test_health_ok(self, async_client: AsyncClient, path):
        """Test that health endpoints report a working backend."""
        with patch(
            "sitecms.api.health.check_db_connection", AsyncMock(return_value=True)
        ):
            response = await async_client.get(path)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["message"] == "Backend is running fine"
        assert data["database"] == "connected"
        assert isinstance(data["version"], str)

    async def test_health_database_down(self, async_client: AsyncClient):
        """Test that an unreachable database makes the service report 503."""
        with patch(
            "sitecms.api.health.check_db_connection", AsyncMock(return_value=False)
        ):
            response = await async_client.get("/api/health")

        assert response.status_code == 503
        data = response.json()
        assert data["ok"] is False
        assert data["database"] == "disconnected"

    async def test_health_needs_no_authentication(self, async_client: AsyncClient):
        """Test that health checks are reachable without a token."""
        async_client.cookies.clear()
        with patch(
            "sitecms.api.health.check_db_connection", AsyncMock(return_value=True)
        ):
            response = await async_client.get("/health")
        assert response.status_code != 401
