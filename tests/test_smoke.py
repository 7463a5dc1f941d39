"""
tests.test_smoke

Minimal smoke tests to validate the dev server can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts over a seeded store and answers the liveness probe.
- Ensure data routes refuse unauthenticated requests and accept both token schemes.
"""

from __future__ import annotations

import httpx
import pytest

from wiwebb_data.auth.simulated import SimulatedIdentityProvider
from wiwebb_data.devserver.app import create_app
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore


@pytest.mark.asyncio
async def test_health_endpoint(settings: Settings) -> None:
    app = create_app(settings=settings)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/healthz")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["collections"]["hotspots"] == 3
        assert r.headers["x-request-id"]


@pytest.mark.asyncio
async def test_data_routes_require_credentials(settings: Settings) -> None:
    app = create_app(settings=settings)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        r = await client.get("/hotspots/")
        assert r.status_code == 401
        assert r.json()["detail"] == "Authentication credentials were not provided."

        r = await client.get("/hotspots/", headers={"Authorization": "Token not-a-key"})
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_and_bearer_schemes(settings: Settings, store: SimulatedStore) -> None:
    app = create_app(settings=settings, store=store)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        r = await client.post("/auth/login/", json={"username": "guest", "password": "guest123"})
        assert r.status_code == 200
        key = r.json()["key"]

        r = await client.get("/auth/user/", headers={"Authorization": f"Token {key}"})
        assert r.status_code == 200
        assert r.json()["username"] == "guest"

        # Tokens minted by the simulated identity provider share the dev server's secret.
        session = await SimulatedIdentityProvider(store, settings).sign_in(
            {"username": "admin", "password": "admin123"}
        )
        r = await client.get(
            "/dashboard/stats/", headers={"Authorization": session.credential.header_value}
        )
        assert r.status_code == 200
        assert r.json()["total_tenants"] == 3

        r = await client.get("/hotspots/999/", headers={"Authorization": f"Token {key}"})
        assert r.status_code == 404
        assert r.json() == {"detail": "Not found."}


@pytest.mark.asyncio
async def test_wrong_password_is_rejected(settings: Settings) -> None:
    app = create_app(settings=settings)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        r = await client.post("/auth/login/", json={"username": "guest", "password": "nope"})
        assert r.status_code == 400


# --- Module Notes -----------------------------------------------------------
# Route-level behaviour is covered in tests/test_resources.py through the live
# resource implementations.
