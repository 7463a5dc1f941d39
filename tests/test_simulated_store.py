"""
tests.test_simulated_store

Simulated backend store and resources.

Responsibilities:
- Ids stay strictly increasing across deletes.
- Created records read back with generated ids and timestamps.
- Updates are shallow merges; deletes never cascade.
"""

from __future__ import annotations

import pytest

from wiwebb_data.api.errors import ApiError, ErrorKind
from wiwebb_data.api.schemas import User
from wiwebb_data.resources.selector import simulated_resources
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import Collection, SimulatedStore


def test_ids_are_monotonic_across_deletes() -> None:
    coll = Collection("things", [{"id": 1}, {"id": 2}])
    issued: list[int] = []
    for n in range(6):
        record = coll.insert({"n": n})
        issued.append(record["id"])
        if n % 2 == 0:
            # Delete the newest record mid-sequence.
            assert coll.remove(record["id"])
    assert issued == sorted(issued)
    assert len(set(issued)) == len(issued)
    assert issued[0] == 3


def test_custom_id_field() -> None:
    coll = Collection("radius_accounting", [{"radacctid": 90}], id_field="radacctid")
    assert coll.insert({"username": "x"})["radacctid"] == 91
    assert coll.find(91) is not None


def test_update_is_a_shallow_merge_that_keeps_the_id() -> None:
    coll = Collection("things", [{"id": 1, "name": "a", "meta": {"x": 1}}])
    updated = coll.update(1, {"id": 7, "meta": {"y": 2}})
    assert updated == {"id": 1, "name": "a", "meta": {"y": 2}}
    assert coll.update(99, {"name": "b"}) is None


def test_reads_are_copies() -> None:
    coll = Collection("things", [{"id": 1, "tags": ["a"]}])
    coll.all()[0]["tags"].append("b")
    assert coll.find(1) == {"id": 1, "tags": ["a"]}


def test_seeded_store_keeps_passwords_out_of_records(store: SimulatedStore) -> None:
    users = store.collection("users").all()
    assert users
    assert all("password" not in u for u in users)
    assert store.passwords["admin"] == "admin123"
    assert len(store.collection("radius_sessions")) == 2


def test_unknown_collection_is_rejected(store: SimulatedStore) -> None:
    with pytest.raises(KeyError):
        store.collection("nope")


@pytest.mark.asyncio
async def test_create_hotspot_then_read_back(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)

    created = await res.hotspots.create_hotspot({"name": "Lobby AP"})
    fetched = await res.hotspots.get_hotspot(created.id)

    assert fetched.name == "Lobby AP"
    assert fetched.id >= 1
    assert fetched.created_at is not None
    assert fetched.tenant_id == 1
    assert fetched.tenant_name == "Harbor Cafe Group"


@pytest.mark.asyncio
async def test_store_ids_are_monotonic_through_resources(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)
    ids: list[int] = []
    for n in range(5):
        created = await res.radius.create_user({"username": f"guest-{n:04d}-new", "password": "secret1"})
        ids.append(created.id)
        if n == 2:
            await res.radius.delete_user(created.id)
    assert ids == sorted(set(ids))


@pytest.mark.asyncio
async def test_delete_does_not_cascade(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)
    await res.tenants.delete_tenant(1)

    hotspots = await res.hotspots.list_hotspots(tenant_id=1)
    assert hotspots
    assert all(h.tenant_id == 1 for h in hotspots)


@pytest.mark.asyncio
async def test_missing_records_raise_not_found(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)
    for call in (
        lambda: res.radius.delete_user(999),
        lambda: res.hotspots.get_hotspot(999),
        lambda: res.tenants.update_tenant(999, {"name": "x"}),
        lambda: res.payments.get_payment_logs(999),
    ):
        with pytest.raises(ApiError) as info:
            await call()
        assert info.value.kind is ErrorKind.not_found


@pytest.mark.asyncio
async def test_duplicate_radius_username_is_a_field_error(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)
    with pytest.raises(ApiError) as info:
        await res.radius.create_user({"username": "guest-0412", "password": "secret1"})
    assert info.value.status == 400
    assert "username" in info.value.details


@pytest.mark.asyncio
async def test_subscribe_replaces_the_active_subscription(store: SimulatedStore) -> None:
    guest = User.model_validate(await store.get("users", 3))
    res = simulated_resources(store, lambda: guest)

    before = await res.subscriptions.get_subscription_status()
    assert before is not None and before.plan == 1

    after = await res.subscriptions.subscribe(2)
    assert after.plan == 2
    assert (await res.subscriptions.get_subscription_status()).id == after.id  # type: ignore[union-attr]
    limits = await res.subscriptions.get_user_limits()
    assert limits.daily_data_mb == 10240

    old = await store.get("subscriptions", before.id)
    assert old is not None and old["status"] == "canceled"


@pytest.mark.asyncio
async def test_payment_lifecycle_is_logged(store: SimulatedStore) -> None:
    guest = User.model_validate(await store.get("users", 3))
    res = simulated_resources(store, lambda: guest)

    created = await res.payments.create_payment({"amount": 4.99, "payment_gateway": "stripe"})
    assert created.payment.status == "pending"
    assert created.payment.user == 3
    assert created.redirect_url and created.payment.order_id in created.redirect_url

    captured = await res.payments.capture_payment(created.payment.id)
    assert captured.status == "completed"
    refunded = await res.payments.refund_payment(created.payment.id, 1.5)
    assert refunded.status == "refunded"

    actions = [log.action for log in await res.payments.get_payment_logs(created.payment.id)]
    assert actions == ["created", "captured", "refunded"]


@pytest.mark.asyncio
async def test_user_listing_paginates_and_sorts(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)
    page = await res.users.list_users({"page": 1, "page_size": 2, "sort_by": "username", "sort_order": "desc"})
    assert page.total == 3
    assert page.has_more
    assert [u.username for u in page.data] == ["harbor_owner", "guest"]

    last = await res.users.list_users({"page": 2, "page_size": 2, "sort_by": "username", "sort_order": "desc"})
    assert [u.username for u in last.data] == ["admin"]
    assert not last.has_more


@pytest.mark.asyncio
async def test_latency_is_applied(settings: Settings) -> None:
    slow = SimulatedStore.seeded(settings.model_copy(update={"mock_latency_min_ms": 1, "mock_latency_max_ms": 2}))
    assert await slow.get("plans", 1) is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("family", "record_id", "changes"),
    [
        ("hotspots", 1, {"name": None}),
        ("hotspots", 1, {"tenant_id": None}),
        ("hotspots", 1, {"security_type": None}),
        ("tenants", 1, {"name": None}),
        ("radius_users", 1, {"username": None}),
        ("users", 3, {"email": None}),
        ("users", 3, {"first_name": None}),
    ],
)
async def test_null_update_is_rejected_before_the_store_changes(
    store: SimulatedStore, family: str, record_id: int, changes: dict[str, object]
) -> None:
    res = simulated_resources(store, lambda: None)
    update = {
        "hotspots": res.hotspots.update_hotspot,
        "tenants": res.tenants.update_tenant,
        "radius_users": res.radius.update_user,
        "users": res.users.update_user,
    }[family]
    before = await store.get(family, record_id)

    with pytest.raises(ApiError) as info:
        await update(record_id, changes)

    assert info.value.kind is ErrorKind.validation
    assert await store.get(family, record_id) == before


@pytest.mark.asyncio
async def test_family_stays_listable_after_a_rejected_update(store: SimulatedStore) -> None:
    res = simulated_resources(store, lambda: None)
    with pytest.raises(ApiError):
        await res.hotspots.update_hotspot(1, {"name": None})

    hotspots = await res.hotspots.list_hotspots()
    assert hotspots
    assert (await res.hotspots.get_hotspot(1)).name
