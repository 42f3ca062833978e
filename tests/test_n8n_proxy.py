from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from conftest import WORKFLOW_ID, make_settings


def build_app(n8n_client, **overrides):
    app = create_app(make_settings(**overrides))
    app.state.n8n_client = n8n_client
    return app


async def call(app, method: str, path: str = "/functions/v1/n8n-proxy", **kwargs):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, path, **kwargs)


@pytest.mark.asyncio
async def test_options_preflight_returns_cors_headers(n8n_client, fake_n8n):
    response = await call(build_app(n8n_client), "OPTIONS")
    assert response.status_code == 200
    assert "PATCH" in response.headers["access-control-allow-methods"]
    allowed = response.headers["access-control-allow-headers"].lower()
    for header in ("content-type", "authorization", "apikey", "x-n8n-api-key"):
        assert header in allowed
    assert fake_n8n.calls == []


@pytest.mark.asyncio
async def test_get_without_body_returns_status(n8n_client, fake_n8n):
    response = await call(build_app(n8n_client), "GET")
    assert response.status_code == 200
    assert response.json() == fake_n8n.workflow()
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_post_activate_toggles_workflow(n8n_client, fake_n8n):
    app = build_app(n8n_client)
    response = await call(app, "POST", "/api/v1/n8n-proxy", json={"action": "activate"})
    assert response.status_code == 200
    assert response.json()["active"] is True
    assert fake_n8n.active is True


@pytest.mark.asyncio
async def test_missing_configuration_is_500_with_flags(n8n_client):
    response = await call(build_app(n8n_client, N8N_WORKFLOW_ID=None), "POST", json={"action": "status"})
    assert response.status_code == 500
    assert response.json()["details"] == {"N8N_URL": True, "N8N_API_KEY": True, "N8N_WORKFLOW_ID": False}


@pytest.mark.asyncio
async def test_upstream_failure_is_bad_gateway(n8n_client, fake_n8n):
    fake_n8n.fail(f"GET /api/v1/workflows/{WORKFLOW_ID}", 500, "boom")
    fake_n8n.fail(f"GET /rest/workflows/{WORKFLOW_ID}", 500, "still boom")
    response = await call(build_app(n8n_client), "POST", json={"action": "status"})
    assert response.status_code == 502
    body = response.json()
    assert body["details"] == "still boom"
    assert body["method"] == "GET"


@pytest.mark.asyncio
async def test_strict_parsing_rejects_malformed_body(n8n_client, fake_n8n):
    app = build_app(n8n_client, N8N_STRICT_PARSING=True)
    response = await call(app, "POST", content=b"{oops", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert fake_n8n.calls == []




@pytest.mark.asyncio
async def test_unknown_action_is_internal_error_when_permissive(n8n_client, fake_n8n):
    response = await call(build_app(n8n_client), "POST", json={"action": "explode"})
    assert response.status_code == 500
    assert response.json()["error"] == "Invalid action"
    assert fake_n8n.calls == []


@pytest.mark.asyncio
async def test_unknown_action_is_bad_request_when_strict(n8n_client):
    app = build_app(n8n_client, N8N_STRICT_PARSING=True)
    response = await call(app, "POST", json={"action": "explode"})
    assert response.status_code == 400


PREFLIGHT = {
    "Origin": "https://other.example.com",
    "Access-Control-Request-Method": "POST",
    "Access-Control-Request-Headers": "content-type, x-n8n-api-key",
}


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/functions/v1/n8n-proxy", "/api/v1/n8n-proxy"])
async def test_browser_preflight_is_accepted_under_restricted_origins(n8n_client, fake_n8n, path):
    app = build_app(n8n_client, CORS_ORIGINS="https://dash.example.com")
    response = await call(app, "OPTIONS", path, headers=PREFLIGHT)
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert fake_n8n.calls == []


@pytest.mark.asyncio
async def test_cross_origin_post_keeps_open_cors_header(n8n_client):
    app = build_app(n8n_client, CORS_ORIGINS="https://dash.example.com")
    response = await call(app, "POST", json={"action": "status"}, headers={"Origin": "https://other.example.com"})
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_other_routes_still_follow_configured_origins(n8n_client):
    app = build_app(n8n_client, CORS_ORIGINS="https://dash.example.com")
    rejected = await call(app, "OPTIONS", "/api/v1/health", headers=PREFLIGHT)
    assert rejected.status_code == 400
    allowed = await call(app, "OPTIONS", "/api/v1/health", headers={**PREFLIGHT, "Origin": "https://dash.example.com"})
    assert allowed.status_code == 200
    assert allowed.headers["access-control-allow-origin"] == "https://dash.example.com"
