"""Tests for the /api/scrape trigger and /health endpoints.

The pipeline and publisher on app.state are mocks; the app is driven
through httpx's ASGI transport.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from app.errors import AuthExchangeError, TransientFetchFailure
from app.schemas import CompetitorEventResult, TokenStatus


def _get_app(records=None, error=None, stored=None):
    """Build a minimal FastAPI app with the scrape and health routers."""
    from fastapi import FastAPI

    from app.routers import health, scrape

    app = FastAPI()
    app.include_router(health.router)
    app.include_router(scrape.router)

    pipeline = MagicMock()
    if error is not None:
        pipeline.scrape = AsyncMock(side_effect=error)
    else:
        pipeline.scrape = AsyncMock(return_value=records or [])
    publisher = MagicMock()
    publisher.publish = AsyncMock(return_value=len(records or []) if stored is None else stored)
    token_cache = MagicMock()
    token_cache.status.return_value = TokenStatus(has_token=False, is_expired=True)

    app.state.pipeline = pipeline
    app.state.publisher = publisher
    app.state.token_cache = token_cache
    return app


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_trigger_returns_records_and_publishes():
    records = [
        CompetitorEventResult(event_name="100m", result="10.5 s", position=1),
        CompetitorEventResult(event_name="200m", result="21.0 s", position=2),
    ]
    app = _get_app(records=records)

    async with _client(app) as client:
        resp = await client.post("/api/scrape")

    assert resp.status_code == 200
    data = resp.json()
    assert data["stored"] == 2
    assert [r["eventName"] for r in data["records"]] == ["100m", "200m"]
    assert data["records"][0]["position"] == 1
    app.state.publisher.publish.assert_awaited_once_with(records)


@pytest.mark.asyncio
async def test_trigger_with_no_results():
    app = _get_app(records=[])

    async with _client(app) as client:
        resp = await client.post("/api/scrape")

    assert resp.status_code == 200
    assert resp.json() == {"records": [], "stored": 0}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        AuthExchangeError("Token exchange failed with status 400", status=400),
        TransientFetchFailure("connection reset"),
    ],
)
async def test_trigger_escalation_returns_502(error):
    app = _get_app(error=error)

    async with _client(app) as client:
        resp = await client.post("/api/scrape")

    assert resp.status_code == 502
    assert "Scrape failed" in resp.json()["detail"]
    app.state.publisher.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_trigger_requires_api_key_when_configured():
    app = _get_app(records=[])

    with patch("app.auth.settings") as mock_settings:
        mock_settings.api_key = "letmein"
        async with _client(app) as client:
            denied = await client.post("/api/scrape")
            allowed = await client.post("/api/scrape", headers={"X-API-Key": "letmein"})

    assert denied.status_code == 401
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_health_reports_token_status():
    app = _get_app()

    async with _client(app) as client:
        resp = await client.get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["token"]["has_token"] is False
    assert data["token"]["is_expired"] is True
