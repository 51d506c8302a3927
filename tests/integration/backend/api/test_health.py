"""
Integration Tests for Health Endpoints.
"""

from unittest.mock import AsyncMock, patch

import pytest


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_liveness_sets_tracing_headers(self, client):
        response = await client.get("/health", headers={"X-Frontend-ID": "cli"})

        assert response.headers["x-request-id"]
        assert "x-response-time" in response.headers

    @pytest.mark.asyncio
    async def test_ready_when_database_healthy(self, client):
        healthy = AsyncMock(return_value={"status": "healthy", "latency_ms": 1})
        with patch("notekeeper.backend.api.health.check_database", healthy):
            response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_not_ready_when_database_down(self, client):
        unhealthy = AsyncMock(return_value={"status": "unhealthy", "error": "OperationalError"})
        with patch("notekeeper.backend.api.health.check_database", unhealthy):
            response = await client.get("/health/ready")

        assert response.status_code == 503
