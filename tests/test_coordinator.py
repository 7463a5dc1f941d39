"""
tests.test_coordinator

Session coordinator against the simulated identity provider.

Responsibilities:
- Sign-in makes protected data-access calls succeed.
- Sign-out purges every cached key and the persisted session.
- Restore at start-up, soft-failing refresh, credential refresh near expiry.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any

import pytest
from sqlalchemy.exc import SQLAlchemyError

from wiwebb_data.api import query_keys as qk
from wiwebb_data.api.errors import ApiError, ErrorKind
from wiwebb_data.auth.models import AuthState, Session
from wiwebb_data.client import WiwebbClient
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.storage.auth_storage import AuthStorage
from wiwebb_data.storage.session import create_engine, create_sessionmaker


async def _stored_session(settings: Settings) -> Session | None:
    engine = create_engine(settings)
    try:
        return await AuthStorage(create_sessionmaker(engine)).load_session()
    finally:
        await engine.dispose()


def _count_calls(monkeypatch: pytest.MonkeyPatch, target: object, name: str, calls: Counter[str]) -> None:
    original = getattr(target, name)

    async def counted(*args: Any, **kwargs: Any) -> Any:
        calls[name] += 1
        return await original(*args, **kwargs)

    monkeypatch.setattr(target, name, counted)


@pytest.mark.asyncio
async def test_sign_in_then_protected_read(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        assert client.auth.state is AuthState.unauthenticated

        with pytest.raises(ApiError) as info:
            await client.data.subscription_status()
        assert info.value.kind is ErrorKind.unauthorized

        session = await client.auth.sign_in({"username": "guest", "password": "guest123"})
        assert client.auth.state is AuthState.authenticated
        assert client.auth.is_authenticated
        assert session.credential.scheme == "Bearer"

        status = await client.data.subscription_status()
        assert status is not None
        assert status.user == session.user.id


@pytest.mark.asyncio
async def test_sign_in_accepts_email(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        session = await client.auth.sign_in({"email": "admin@wiwebb.io", "password": "admin123"})
        assert session.user.username == "admin"


@pytest.mark.asyncio
async def test_bad_credentials_leave_state_unauthenticated(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        with pytest.raises(ApiError) as info:
            await client.auth.sign_in({"username": "guest", "password": "wrong-password"})
        assert info.value.status == 400
        assert client.auth.state is AuthState.unauthenticated
        assert client.auth.session is None


@pytest.mark.asyncio
async def test_sign_out_purges_cache_and_storage(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "admin", "password": "admin123"})
        await client.data.hotspots()
        await client.data.plans()
        await client.data.subscription_status()
        cached = client.cache.keys()
        assert cached
        assert all(client.cache.peek(key).hit for key in cached)

        await client.auth.sign_out()

        assert client.auth.state is AuthState.unauthenticated
        assert client.auth.user is None
        for key in cached:
            assert not client.cache.peek(key).hit
        assert len(client.cache) == 0

        assert await _stored_session(settings) is None


@pytest.mark.asyncio
async def test_session_is_restored_without_sign_in(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "harbor_owner", "password": "harbor123"})

    async with await WiwebbClient.create(settings, store=store) as relaunched:
        assert relaunched.auth.state is AuthState.authenticated
        assert relaunched.auth.user is not None
        assert relaunched.auth.user.username == "harbor_owner"
        tenant = await relaunched.data.my_tenant()
        assert tenant.id == 1


@pytest.mark.asyncio
async def test_rejected_snapshot_is_discarded(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "guest", "password": "guest123"})

    rotated = settings.model_copy(update={"jwt_secret": "another-secret-with-enough-length-0123"})
    async with await WiwebbClient.create(rotated, store=store) as relaunched:
        assert relaunched.auth.state is AuthState.unauthenticated

    assert await _stored_session(settings) is None


@pytest.mark.asyncio
async def test_refresh_failure_keeps_current_session(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        session = await client.auth.sign_in({"username": "guest", "password": "guest123"})
        await store.delete("users", session.user.id)

        assert await client.auth.refresh() is session
        assert client.auth.state is AuthState.authenticated


@pytest.mark.asyncio
async def test_credential_is_refreshed_near_expiry(settings: Settings, store: SimulatedStore) -> None:
    short_lived = settings.model_copy(update={"mock_token_ttl_s": 30, "token_refresh_margin_s": 60})
    async with await WiwebbClient.create(short_lived, store=store) as client:
        first = await client.auth.sign_in({"username": "guest", "password": "guest123"})
        credential = await client.auth.get_credential()
        assert credential is not None
        assert client.auth.session is not first
        assert client.auth.session is not None
        assert client.auth.session.issued_at > first.issued_at


@pytest.mark.asyncio
async def test_switching_user_clears_everything(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "guest", "password": "guest123"})
        await client.data.plans()
        generation = client.cache.generation

        await client.auth.sign_in({"username": "admin", "password": "admin123"})

        assert client.cache.generation == generation + 1
        assert not client.cache.peek(qk.subscriptions.plans.all()).hit


@pytest.mark.asyncio
async def test_profile_update_goes_through_the_coordinator(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "guest", "password": "guest123"})
        user = await client.data.update_profile({"first_name": "Gwen", "username": ""})
        assert user.first_name == "Gwen"
        assert user.username == "guest"
        assert client.auth.user is not None
        assert client.auth.user.first_name == "Gwen"
        assert (await client.data.profile()).first_name == "Gwen"


@pytest.mark.asyncio
async def test_password_change_requires_old_password(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "guest", "password": "guest123"})
        with pytest.raises(ApiError):
            await client.auth.update_password("new-secret", old_password="not-it")
        await client.auth.update_password("new-secret", old_password="guest123")
        await client.auth.sign_out()

        session = await client.auth.sign_in({"username": "guest", "password": "new-secret"})
        assert session.user.username == "guest"


@pytest.mark.asyncio
async def test_identity_events_are_logged(
    settings: Settings, store: SimulatedStore, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="wiwebb_data.auth.identity"):
        async with await WiwebbClient.create(settings, store=store) as client:
            await client.auth.sign_in({"username": "guest", "password": "guest123"})
            assert client.auth.state is AuthState.authenticated
            await client.auth.sign_out()
            assert client.auth.state is AuthState.unauthenticated

    lines = [json.loads(r.getMessage()) for r in caplog.records if r.name == "wiwebb_data.auth.identity"]
    events = [line for line in lines if line["event"] == "identity.event"]
    assert [line["auth_event"] for line in events] == ["SIGNED_IN", "SIGNED_OUT"]
    assert events[0]["subject"] is not None


@pytest.mark.asyncio
async def test_refresh_invalidates_only_session_scoped_keys(
    settings: Settings, store: SimulatedStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "guest", "password": "guest123"})
        calls: Counter[str] = Counter()
        subscriptions = client.resources.subscriptions
        _count_calls(monkeypatch, subscriptions, "get_subscription_status", calls)
        _count_calls(monkeypatch, subscriptions, "list_plans", calls)

        await client.data.subscription_status()
        await client.data.plans()
        generation = client.cache.generation

        await client.auth.refresh()
        await client.cache.drain()

        assert client.cache.generation == generation
        assert calls == Counter({"get_subscription_status": 2, "list_plans": 1})
        plans = client.cache.peek(qk.subscriptions.plans.all())
        assert plans.hit and not plans.stale
        status = client.cache.peek(qk.subscriptions.status())
        assert status.hit and not status.stale


@pytest.mark.asyncio
async def test_profile_reads_do_not_reissue_the_session(
    settings: Settings, store: SimulatedStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        session = await client.auth.sign_in({"username": "guest", "password": "guest123"})
        calls: Counter[str] = Counter()
        _count_calls(monkeypatch, client.resources.subscriptions, "get_subscription_status", calls)
        await client.data.subscription_status()

        for _ in range(3):
            assert (await client.data.profile()).id == session.user.id
            client.cache.invalidate(qk.profiles.all)
            await client.cache.drain()

        assert client.auth.session is session
        assert calls["get_subscription_status"] == 1


@pytest.mark.asyncio
async def test_profile_read_requires_a_session(settings: Settings, store: SimulatedStore) -> None:
    async with await WiwebbClient.create(settings, store=store) as client:
        with pytest.raises(ApiError) as info:
            await client.data.profile()
        assert info.value.kind is ErrorKind.unauthorized


@pytest.mark.asyncio
async def test_sign_out_completes_when_storage_fails(
    settings: Settings, store: SimulatedStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def broken_clear_all(self: AuthStorage) -> None:
        raise SQLAlchemyError("disk I/O error")

    async with await WiwebbClient.create(settings, store=store) as client:
        await client.auth.sign_in({"username": "guest", "password": "guest123"})
        await client.data.plans()
        monkeypatch.setattr(AuthStorage, "clear_all", broken_clear_all)

        await client.auth.sign_out()

        assert client.auth.state is AuthState.unauthenticated
        assert len(client.cache) == 0
