"""
Unit tests for library_catalog.main – health check endpoint, request middleware.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from library_catalog.main import app


@pytest_asyncio.fixture
async def test_client():
    """Simple test client without DB overrides (for endpoints that don't need DB)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_health_returns_200(self, test_client):
        resp = await test_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_includes_version(self, test_client):
        resp = await test_client.get("/health")
        assert resp.json()["version"] == "1.0.0"


class TestRequestMiddleware:
    @pytest.mark.asyncio
    async def test_response_has_request_id_header(self, test_client):
        resp = await test_client.get("/health")
        assert "x-request-id" in resp.headers

    @pytest.mark.asyncio
    async def test_request_ids_differ_per_request(self, test_client):
        first = await test_client.get("/health")
        second = await test_client.get("/health")
        assert first.headers["x-request-id"] != second.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_unknown_route_still_tagged(self, test_client):
        resp = await test_client.get("/nope")
        assert resp.status_code == 404
        assert "x-request-id" in resp.headers


class TestOpenAPISpec:
    @pytest.mark.asyncio
    async def test_docs_endpoint_accessible(self, test_client):
        resp = await test_client.get("/docs")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_catalog_routes_registered(self, test_client):
        resp = await test_client.get("/openapi.json")
        paths = resp.json()["paths"]
        assert "/api/v1/books" in paths
        assert "/api/v1/books/{book_id}/copies" in paths
        assert "/api/v1/copies/{copy_id}/history" in paths
        assert "/api/v1/members/{member_id}" in paths
        assert "/api/v1/borrowings/{borrowing_id}/return" in paths
