"""
wiwebb_data.simulated.store

In-memory simulated backend.

Responsibilities:
- Hold one ordered collection per resource family, seeded from packaged JSON fixtures.
- Offer create/read/update/delete with id generation, ISO-8601 timestamps and
  shallow-merge updates.
- Await a randomized latency on every operation.
"""

from __future__ import annotations

import asyncio
import copy
import json
import random
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from importlib import resources
from typing import Any

from wiwebb_data.observability.logging import get_logger
from wiwebb_data.settings import Settings

log = get_logger(__name__)

Record = dict[str, Any]

# collection name -> fixture file
COLLECTIONS: dict[str, str] = {
    "hotspots": "hotspots.json",
    "radius_users": "radius_users.json",
    "radius_groups": "radius_groups.json",
    "radius_sessions": "radius_active_sessions.json",
    "radius_accounting": "radius_accounting.json",
    "radius_post_auth": "radius_post_auth.json",
    "plans": "plans.json",
    "subscriptions": "subscriptions.json",
    "payment_gateways": "payment_gateways.json",
    "payments": "payments.json",
    "payment_logs": "payment_logs.json",
    "tenants": "tenants.json",
    "users": "users.json",
}
DOCUMENTS: dict[str, str] = {
    "dashboard_stats": "dashboard_stats.json",
    "hotspot_stats": "hotspot_stats.json",
}


def utcnow_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


class Collection:
    """
    Ordered records of one family.

    Ids are max(existing id, highest id ever issued) + 1, so ids stay strictly increasing
    even when the newest record is deleted. Deletes are hard removals and never cascade.
    """

    def __init__(self, name: str, records: Iterable[Record] = (), *, id_field: str = "id") -> None:
        self.name = name
        self._id_field = id_field
        self._records: list[Record] = [dict(r) for r in records]
        self._high_water = max((self._id_of(r) for r in self._records), default=0)

    def __len__(self) -> int:
        return len(self._records)

    def _id_of(self, record: Record) -> int:
        value = record.get(self._id_field)
        return value if isinstance(value, int) else 0

    def next_id(self) -> int:
        current_max = max((self._id_of(r) for r in self._records), default=0)
        return max(current_max, self._high_water) + 1

    def all(self) -> list[Record]:
        return [copy.deepcopy(r) for r in self._records]

    def filter(self, predicate: Callable[[Record], bool]) -> list[Record]:
        return [copy.deepcopy(r) for r in self._records if predicate(r)]

    def find(self, record_id: int) -> Record | None:
        for record in self._records:
            if self._id_of(record) == record_id:
                return copy.deepcopy(record)
        return None

    def insert(self, data: Record, *, stamps: tuple[str, ...] = ()) -> Record:
        record = dict(data)
        new_id = self.next_id()
        record[self._id_field] = new_id
        now = utcnow_iso()
        for field in stamps:
            record[field] = now
        self._records.append(record)
        self._high_water = new_id
        return copy.deepcopy(record)

    def update(self, record_id: int, changes: Record, *, stamps: tuple[str, ...] = ()) -> Record | None:
        for index, record in enumerate(self._records):
            if self._id_of(record) == record_id:
                merged = {**record, **changes, self._id_field: record_id}
                now = utcnow_iso()
                for field in stamps:
                    merged[field] = now
                self._records[index] = merged
                return copy.deepcopy(merged)
        return None

    def remove(self, record_id: int) -> bool:
        for index, record in enumerate(self._records):
            if self._id_of(record) == record_id:
                del self._records[index]
                return True
        return False


class SimulatedStore:
    def __init__(
        self,
        *,
        collections: dict[str, Collection] | None = None,
        documents: dict[str, Any] | None = None,
        passwords: dict[str, str] | None = None,
        latency_ms: tuple[int, int] = (200, 500),
    ) -> None:
        self.collections: dict[str, Collection] = collections or {}
        self.documents: dict[str, Any] = documents or {}
        # username -> password, kept apart from user records so it is never returned.
        self.passwords: dict[str, str] = passwords or {}
        self._latency_ms = latency_ms

    @classmethod
    def seeded(cls, settings: Settings) -> SimulatedStore:
        collections: dict[str, Collection] = {}
        passwords: dict[str, str] = {}
        for name, filename in COLLECTIONS.items():
            records = _load_fixture(filename)
            if name == "users":
                for record in records:
                    password = record.pop("password", None)
                    if password:
                        passwords[record["username"]] = password
            id_field = "radacctid" if name in ("radius_sessions", "radius_accounting") else "id"
            collections[name] = Collection(name, records, id_field=id_field)
        documents = {name: _load_fixture(filename) for name, filename in DOCUMENTS.items()}
        log.info(
            "simulated_store.seeded",
            collections={name: len(c) for name, c in collections.items()},
        )
        return cls(
            collections=collections,
            documents=documents,
            passwords=passwords,
            latency_ms=(settings.mock_latency_min_ms, settings.mock_latency_max_ms),
        )

    async def latency(self) -> None:
        low, high = self._latency_ms
        if high <= 0:
            # Still yield so callers never rely on synchronous completion.
            await asyncio.sleep(0)
            return
        await asyncio.sleep(random.uniform(low, high) / 1000)

    def collection(self, name: str) -> Collection:
        try:
            return self.collections[name]
        except KeyError:
            raise KeyError(f"unknown simulated collection: {name}") from None

    # --- async CRUD -----------------------------------------------------------------

    async def list_records(self, name: str, predicate: Callable[[Record], bool] | None = None) -> list[Record]:
        await self.latency()
        coll = self.collection(name)
        return coll.filter(predicate) if predicate else coll.all()

    async def get(self, name: str, record_id: int) -> Record | None:
        await self.latency()
        return self.collection(name).find(record_id)

    async def first(self, name: str, predicate: Callable[[Record], bool]) -> Record | None:
        await self.latency()
        matches = self.collection(name).filter(predicate)
        return matches[0] if matches else None

    async def create(self, name: str, data: Record, *, stamps: tuple[str, ...] = ()) -> Record:
        await self.latency()
        return self.collection(name).insert(data, stamps=stamps)

    async def update(
        self, name: str, record_id: int, changes: Record, *, stamps: tuple[str, ...] = ()
    ) -> Record | None:
        await self.latency()
        return self.collection(name).update(record_id, changes, stamps=stamps)

    async def delete(self, name: str, record_id: int) -> bool:
        await self.latency()
        return self.collection(name).remove(record_id)

    async def document(self, name: str) -> Any:
        await self.latency()
        return copy.deepcopy(self.documents.get(name))


def _load_fixture(filename: str) -> Any:
    text = resources.files("wiwebb_data.simulated").joinpath("fixtures", filename).read_text(
        encoding="utf-8"
    )
    return json.loads(text)


# --- Module Notes -----------------------------------------------------------
# Every mutation completes between two suspension points (after `latency()`), so the
# event loop never observes a half-applied change and no locking is needed.
