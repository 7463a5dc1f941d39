"""
wiwebb_data.resources.hotspots

Hotspot data access.

Responsibilities:
- List/read/create/update/delete hotspots and read per-hotspot statistics.
- Live path: `/hotspots/` endpoints. Simulated path: the `hotspots` collection.
"""

from __future__ import annotations

from typing import Any, Protocol

from wiwebb_data.api.errors import ApiError, not_found_error
from wiwebb_data.api.schemas import CreateHotspotRequest, Hotspot, HotspotStats, UpdateHotspotRequest
from wiwebb_data.api.validation import dump_payload
from wiwebb_data.resources.base import found, parse, parse_list, partial
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.transport.http import ResilientTransport


class HotspotsResource(Protocol):
    async def list_hotspots(self, tenant_id: int | None = None) -> list[Hotspot]: ...

    async def get_hotspot(self, hotspot_id: int) -> Hotspot: ...

    async def create_hotspot(self, request: CreateHotspotRequest | dict[str, Any]) -> Hotspot: ...

    async def update_hotspot(self, hotspot_id: int, changes: UpdateHotspotRequest | dict[str, Any]) -> Hotspot: ...

    async def delete_hotspot(self, hotspot_id: int) -> None: ...

    async def get_hotspot_stats(self, hotspot_id: int) -> HotspotStats: ...


class LiveHotspots:
    def __init__(self, transport: ResilientTransport) -> None:
        self._http = transport

    async def list_hotspots(self, tenant_id: int | None = None) -> list[Hotspot]:
        params = {"tenant_id": tenant_id} if tenant_id is not None else None
        return parse_list(Hotspot, await self._http.get("/hotspots/", params=params))

    async def get_hotspot(self, hotspot_id: int) -> Hotspot:
        return parse(Hotspot, await self._http.get(f"/hotspots/{hotspot_id}/"))

    async def create_hotspot(self, request: CreateHotspotRequest | dict[str, Any]) -> Hotspot:
        payload = dump_payload(parse(CreateHotspotRequest, request))
        return parse(Hotspot, await self._http.post("/hotspots/", payload))

    async def update_hotspot(self, hotspot_id: int, changes: UpdateHotspotRequest | dict[str, Any]) -> Hotspot:
        payload = partial(UpdateHotspotRequest, changes)
        return parse(Hotspot, await self._http.put(f"/hotspots/{hotspot_id}/", payload))

    async def delete_hotspot(self, hotspot_id: int) -> None:
        await self._http.delete(f"/hotspots/{hotspot_id}/")

    async def get_hotspot_stats(self, hotspot_id: int) -> HotspotStats:
        return parse(HotspotStats, await self._http.get(f"/hotspots/{hotspot_id}/stats/"))


class SimulatedHotspots:
    def __init__(self, store: SimulatedStore) -> None:
        self._store = store

    async def _tenant_name(self, tenant_id: int) -> str | None:
        tenant = await self._store.get("tenants", tenant_id)
        return tenant["name"] if tenant else None

    async def list_hotspots(self, tenant_id: int | None = None) -> list[Hotspot]:
        if tenant_id is None:
            records = await self._store.list_records("hotspots")
        else:
            records = await self._store.list_records(
                "hotspots", lambda h: h.get("tenant_id") == tenant_id
            )
        return parse_list(Hotspot, records)

    async def get_hotspot(self, hotspot_id: int) -> Hotspot:
        return parse(Hotspot, found(await self._store.get("hotspots", hotspot_id)))

    async def create_hotspot(self, request: CreateHotspotRequest | dict[str, Any]) -> Hotspot:
        req = parse(CreateHotspotRequest, request)
        tenant_id = req.tenant_id
        if tenant_id is None:
            # Unscoped creates land on the first active tenant.
            tenant = await self._store.first("tenants", lambda t: bool(t.get("is_active")))
            if tenant is None:
                raise ApiError(
                    "No active tenant available for the new hotspot.",
                    status=400,
                    details={"tenant_id": ["This field is required."]},
                    structured=True,
                )
            tenant_id = tenant["id"]
        record = await self._store.create(
            "hotspots",
            {
                "name": req.name,
                "tenant_id": tenant_id,
                "tenant_name": await self._tenant_name(tenant_id),
                "status": "Offline",
                "clients": 0,
                "bandwidth": "0 Mbps",
                "uptime": "0%",
                "mac_address": req.mac_address,
                "bandwidth_limit": req.bandwidth_limit,
                "security_type": req.security_type or "Captive Portal",
            },
            stamps=("created_at", "updated_at"),
        )
        return parse(Hotspot, record)

    async def update_hotspot(self, hotspot_id: int, changes: UpdateHotspotRequest | dict[str, Any]) -> Hotspot:
        payload = partial(UpdateHotspotRequest, changes)
        if payload.get("tenant_id") is not None:
            payload["tenant_name"] = await self._tenant_name(payload["tenant_id"])
        record = await self._store.update("hotspots", hotspot_id, payload, stamps=("updated_at",))
        return parse(Hotspot, found(record))

    async def delete_hotspot(self, hotspot_id: int) -> None:
        if not await self._store.delete("hotspots", hotspot_id):
            raise not_found_error()

    async def get_hotspot_stats(self, hotspot_id: int) -> HotspotStats:
        hotspot = found(await self._store.get("hotspots", hotspot_id))
        by_id = await self._store.document("hotspot_stats") or {}
        stats = by_id.get(str(hotspot_id)) or {
            "hotspot_id": hotspot_id,
            "clients_connected": hotspot.get("clients", 0),
            "data_usage_mb": 0,
            "uptime_percent": None,
        }
        return parse(HotspotStats, stats)
