"""
tests.test_transport

Resilient transport.

Responsibilities:
- Retry bound: persistent 5xx is attempted 1 + max_retries times, 4xx exactly once.
- Credential injection for both authorization schemes, and public endpoints.
- Every failure leaves the transport as an `ApiError`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from wiwebb_data.api.errors import ApiError, ErrorKind
from wiwebb_data.auth.models import Credential
from wiwebb_data.settings import Settings
from wiwebb_data.transport.http import ResilientTransport
from wiwebb_data.transport.retry import RetryPolicy


async def _no_sleep(_: float) -> None:
    return None


def _transport(
    settings: Settings, handler: Callable[[httpx.Request], httpx.Response], **kw: object
) -> tuple[ResilientTransport, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=settings.api_base_url)
    return ResilientTransport(settings=settings, http=http, sleep=_no_sleep, **kw), http  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_server_error_is_attempted_four_times(live_settings: Settings) -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        return httpx.Response(500, json={"detail": "Internal server error"})

    transport, http = _transport(live_settings, handler)
    async with http:
        with pytest.raises(ApiError) as info:
            await transport.get("/hotspots/")

    assert attempts == 4
    assert info.value.kind is ErrorKind.server
    assert info.value.status == 500


@pytest.mark.asyncio
async def test_client_error_is_attempted_once(live_settings: Settings) -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        return httpx.Response(400, json={"name": ["This field is required."]})

    transport, http = _transport(live_settings, handler)
    async with http:
        with pytest.raises(ApiError) as info:
            await transport.post("/hotspots/", {"tenant_id": 1})

    assert attempts == 1
    assert info.value.status == 400
    assert info.value.details == {"name": ["This field is required."]}


@pytest.mark.asyncio
async def test_network_failure_recovers_within_the_retry_budget(live_settings: Settings) -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=[{"id": 1}])

    transport, http = _transport(live_settings, handler)
    async with http:
        assert await transport.get("/hotspots/") == [{"id": 1}]
    assert attempts == 3


@pytest.mark.asyncio
async def test_network_failure_surfaces_after_exhausting_retries(live_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    transport, http = _transport(live_settings, handler, retry=RetryPolicy(max_retries=1, base_delay_s=0))
    async with http:
        with pytest.raises(ApiError) as info:
            await transport.get("/hotspots/")
    assert info.value.kind is ErrorKind.network
    assert info.value.status is None


@pytest.mark.asyncio
async def test_credential_is_attached_with_its_scheme(live_settings: Settings) -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(204)

    credential = Credential(token="k3y", scheme="Token")

    async def provider() -> Credential | None:
        return credential

    transport, http = _transport(live_settings, handler, credentials=provider)
    async with http:
        assert await transport.delete("/hotspots/1/") is None
        await transport.post("/auth/login/", {"username": "a"}, auth=False)
        await transport.get("/auth/user/", headers={"Authorization": "Bearer explicit"})

    assert seen == ["Token k3y", None, "Bearer explicit"]


@pytest.mark.asyncio
async def test_failing_credential_provider_does_not_block_requests(live_settings: Settings) -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"ok": True})

    async def provider() -> Credential | None:
        raise RuntimeError("storage unavailable")

    transport, http = _transport(live_settings, handler)
    transport.bind_credentials(provider)
    async with http:
        assert await transport.get("/subscriptions/plans/") == {"ok": True}
    assert seen == [None]


@pytest.mark.asyncio
async def test_non_json_body_is_normalized(live_settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>", headers={"Content-Type": "text/html"})

    transport, http = _transport(live_settings, handler)
    async with http:
        with pytest.raises(ApiError) as info:
            await transport.get("/hotspots/")
    assert info.value.code == "INVALID_RESPONSE"


def test_retry_delay_grows_exponentially_and_is_capped() -> None:
    policy = RetryPolicy(base_delay_s=1.0, max_delay_s=5.0, jitter=0.0)
    assert [policy.delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 5.0]


def test_credential_expiry_window() -> None:
    now = datetime(2026, 1, 1, tzinfo=UTC)
    soon = Credential(token="t", expires_at=now + timedelta(seconds=30))
    later = Credential(token="t", expires_at=now + timedelta(hours=1))
    assert soon.expires_within(timedelta(seconds=60), now=now)
    assert not later.expires_within(timedelta(seconds=60), now=now)
    assert not Credential(token="t", scheme="Token").expires_within(timedelta(days=365), now=now)
    assert "secret-token" not in repr(Credential(token="secret-token"))
