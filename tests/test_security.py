"""
Tests for security headers middleware and session cookie flags.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_security_headers_present(client: AsyncClient):
    """Test that all required security headers are present in responses."""
    response = await client.get("/login")

    assert response.status_code == 200
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
    assert "Content-Security-Policy" in response.headers
    assert "Permissions-Policy" in response.headers


@pytest.mark.asyncio
async def test_security_headers_on_all_endpoints(client: AsyncClient):
    """Pages, redirects, static files and health all carry the headers."""
    for endpoint in ["/", "/login", "/register", "/new", "/health", "/static/style.css"]:
        response = await client.get(endpoint)

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_hsts_header_not_in_dev(client: AsyncClient):
    """HSTS is only sent in production."""
    response = await client.get("/login")
    assert response.headers.get("Strict-Transport-Security") is None


@pytest.mark.asyncio
async def test_csp_allows_htmx_cdn(client: AsyncClient):
    response = await client.get("/login")

    csp = response.headers.get("Content-Security-Policy")
    assert "default-src 'self'" in csp
    assert "https://unpkg.com" in csp


@pytest.mark.asyncio
async def test_security_headers_on_error_responses(client: AsyncClient):
    response = await client.get("/nonexistent")

    assert response.status_code == 404
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"


@pytest.mark.asyncio
async def test_session_cookie_is_http_only(client: AsyncClient, registered_user, sample_user, login):
    response = await login(sample_user["email"], sample_user["password"])

    cookie = response.headers["set-cookie"].lower()
    assert cookie.startswith("session=")
    assert "httponly" in cookie
    assert "samesite=lax" in cookie
    assert "secure" not in cookie  # Only set in production
