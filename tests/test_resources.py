"""
tests.test_resources

Backend equivalence.

Responsibilities:
- Run the live resource implementations against the dev server (in-process, over
  `httpx.ASGITransport`) and compare them with the simulated implementations over
  the same seed data.
- Missing records surface as `not_found` whichever backend is active.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from wiwebb_data.api import query_keys as qk
from wiwebb_data.api.errors import ApiError, ErrorKind
from wiwebb_data.client import WiwebbClient
from wiwebb_data.devserver.app import create_app
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore


@pytest_asyncio.fixture
async def live(live_settings: Settings) -> AsyncIterator[WiwebbClient]:
    app = create_app(settings=live_settings, store=SimulatedStore.seeded(live_settings))
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=live_settings.api_base_url)
    client = await WiwebbClient.create(live_settings, http=http)
    try:
        await client.auth.sign_in({"username": "admin", "password": "admin123"})
        yield client
    finally:
        await client.aclose()
        await http.aclose()


@pytest_asyncio.fixture
async def simulated(settings: Settings, store: SimulatedStore) -> AsyncIterator[WiwebbClient]:
    client = await WiwebbClient.create(settings, store=store)
    try:
        await client.auth.sign_in({"username": "admin", "password": "admin123"})
        yield client
    finally:
        await client.aclose()


def _semantic(model: object) -> dict[str, object]:
    # Timestamps and generated identifiers are allowed to differ between backends.
    volatile = {"created_at", "updated_at", "created", "modified", "date_joined", "last_login", "timestamp"}
    return {k: v for k, v in model.model_dump().items() if k not in volatile}  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_live_path_uses_token_auth(live: WiwebbClient) -> None:
    assert not live.resources.simulated
    assert live.auth.session is not None
    assert live.auth.session.credential.scheme == "Token"
    assert live.auth.user is not None and live.auth.user.username == "admin"


@pytest.mark.asyncio
async def test_reads_are_equivalent_across_backends(live: WiwebbClient, simulated: WiwebbClient) -> None:
    reads = [
        lambda c: c.data.hotspots(),
        lambda c: c.data.hotspot(1),
        lambda c: c.data.hotspot_stats(1),
        lambda c: c.data.radius_users(),
        lambda c: c.data.radius_groups(),
        lambda c: c.data.active_sessions(),
        lambda c: c.data.accounting({"username": "guest-0412"}),
        lambda c: c.data.post_auth_logs({"reply": "Access-Reject"}),
        lambda c: c.data.plans(),
        lambda c: c.data.plan(2),
        lambda c: c.data.subscription_status(),
        lambda c: c.data.user_limits(),
        lambda c: c.data.payment_gateways(),
        lambda c: c.data.payment_history({"status": "completed"}),
        lambda c: c.data.payment_logs(1),
        lambda c: c.data.tenants(),
        lambda c: c.data.tenant(2),
        lambda c: c.data.dashboard_stats(),
        lambda c: c.data.user(2),
    ]
    for read in reads:
        live_value = await read(live)
        sim_value = await read(simulated)
        if isinstance(live_value, list):
            assert [_semantic(v) for v in live_value] == [_semantic(v) for v in sim_value]
        elif live_value is None:
            assert sim_value is None
        else:
            assert type(live_value) is type(sim_value)
            assert _semantic(live_value) == _semantic(sim_value)


@pytest.mark.asyncio
async def test_paged_users_are_equivalent(live: WiwebbClient, simulated: WiwebbClient) -> None:
    options = {"page": 1, "page_size": 2, "sort_by": "username"}
    live_page = await live.data.users(options)
    sim_page = await simulated.data.users(options)
    assert live_page.total == sim_page.total == 3
    assert live_page.has_more and sim_page.has_more
    assert [u.username for u in live_page.data] == [u.username for u in sim_page.data] == ["admin", "guest"]


@pytest.mark.asyncio
async def test_mutations_are_equivalent(live: WiwebbClient, simulated: WiwebbClient) -> None:
    for client in (live, simulated):
        hotspot = await client.data.create_hotspot({"name": "Lobby AP", "tenant_id": 2})
        assert hotspot.id == 4
        assert hotspot.tenant_name == "Northside Library"
        assert hotspot.created_at is not None

        renamed = await client.data.update_hotspot(hotspot.id, {"name": "Lobby AP 2"})
        assert renamed.name == "Lobby AP 2"
        assert renamed.tenant_id == 2

        await client.data.delete_hotspot(hotspot.id)
        assert [h.id for h in await client.data.hotspots()] == [1, 2, 3]

        tenant = await client.data.create_tenant({"name": "Harbor Cafe Group"})
        assert tenant.slug == "harbor-cafe-group"

        user = await client.data.create_user(
            {"username": "ops", "email": "ops@wiwebb.io", "password": "secret12", "role": "admin"}
        )
        assert user.is_staff
        promoted = await client.data.assign_role(user.id, "tenant_owner", 1)
        assert promoted.tenant is not None and promoted.tenant.slug == "harbor-cafe"
        deactivated = await client.data.activate_user(user.id, False)
        assert not deactivated.is_active


@pytest.mark.asyncio
async def test_mutation_refreshes_cached_lists(live: WiwebbClient) -> None:
    before = await live.data.radius_users()
    created = await live.data.create_radius_user({"username": "guest-0500", "password": "secret1"})
    await live.cache.drain()
    after = await live.data.radius_users()
    assert len(after) == len(before) + 1
    assert after[-1].id == created.id
    assert after[-1].value == "********"


@pytest.mark.asyncio
async def test_deleting_a_missing_radius_user_is_not_found(live: WiwebbClient, simulated: WiwebbClient) -> None:
    for client in (live, simulated):
        with pytest.raises(ApiError) as info:
            await client.data.delete_radius_user(9999)
        assert info.value.kind is ErrorKind.not_found
        assert info.value.status == 404


@pytest.mark.asyncio
async def test_field_errors_are_equivalent(live: WiwebbClient, simulated: WiwebbClient) -> None:
    for client in (live, simulated):
        with pytest.raises(ApiError) as info:
            await client.data.create_radius_user({"username": "guest-0412", "password": "secret1"})
        assert info.value.status == 400
        assert "username" in info.value.details


@pytest.mark.asyncio
async def test_payment_flow_on_live_path(live: WiwebbClient) -> None:
    created = await live.data.create_payment({"amount": 19.99, "payment_gateway": "stripe"})
    assert created.payment.status == "pending"
    assert created.redirect_url is not None
    captured = await live.data.capture_payment(created.payment.id)
    assert captured.status == "completed"
    logs = await live.data.payment_logs(created.payment.id)
    assert [entry.action for entry in logs] == ["created", "captured"]


@pytest.mark.asyncio
async def test_sign_out_revokes_the_token_key(live: WiwebbClient) -> None:
    await live.auth.sign_out()
    with pytest.raises(ApiError) as info:
        await live.resources.hotspots.list_hotspots()
    assert info.value.kind is ErrorKind.unauthorized


@pytest.mark.asyncio
async def test_null_update_is_refused_on_both_backends(live: WiwebbClient, simulated: WiwebbClient) -> None:
    for client in (live, simulated):
        with pytest.raises(ApiError) as info:
            await client.data.update_hotspot(1, {"name": None})
        assert info.value.kind is ErrorKind.validation
        assert (await client.resources.hotspots.get_hotspot(1)).name
        assert await client.resources.hotspots.list_hotspots()


@pytest.mark.asyncio
async def test_dev_server_refuses_null_on_required_fields(live: WiwebbClient) -> None:
    before = await live.resources.tenants.get_tenant(1)
    with pytest.raises(ApiError) as info:
        await live.transport.put("/tenants/1/", {"name": None})
    assert info.value.status == 400
    assert await live.resources.tenants.get_tenant(1) == before


@pytest.mark.asyncio
async def test_delete_drops_cached_detail_entries(live: WiwebbClient, simulated: WiwebbClient) -> None:
    for client in (live, simulated):
        await client.data.hotspot(2)
        await client.data.hotspot_stats(2)
        listing = await client.data.hotspots()

        await client.data.delete_hotspot(2)
        await client.cache.drain()

        assert not client.cache.peek(qk.hotspots.detail(2)).hit
        assert not client.cache.peek(qk.hotspots.stats(2)).hit
        remaining = await client.data.hotspots()
        assert [h.id for h in remaining] == [h.id for h in listing if h.id != 2]
