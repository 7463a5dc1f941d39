"""
wiwebb_data.resources.tenants

Tenants and the admin dashboard.

Responsibilities:
- Tenant CRUD plus the signed-in user's own tenant.
- Dashboard statistics.
"""

from __future__ import annotations

import uuid
from typing import Any, Protocol

from wiwebb_data.api.errors import not_found_error
from wiwebb_data.api.schemas import CreateTenantRequest, DashboardStats, Tenant, UpdateTenantRequest
from wiwebb_data.api.validation import dump_payload
from wiwebb_data.resources.base import CurrentUser, found, parse, parse_list, partial, require_user, slugify
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.transport.http import ResilientTransport


class TenantsResource(Protocol):
    async def list_tenants(self) -> list[Tenant]: ...

    async def get_tenant(self, tenant_id: int) -> Tenant: ...

    async def get_my_tenant(self) -> Tenant: ...

    async def create_tenant(self, request: CreateTenantRequest | dict[str, Any]) -> Tenant: ...

    async def update_tenant(self, tenant_id: int, changes: UpdateTenantRequest | dict[str, Any]) -> Tenant: ...

    async def delete_tenant(self, tenant_id: int) -> None: ...

    async def get_dashboard_stats(self) -> DashboardStats: ...


class LiveTenants:
    def __init__(self, transport: ResilientTransport) -> None:
        self._http = transport

    async def list_tenants(self) -> list[Tenant]:
        return parse_list(Tenant, await self._http.get("/tenants/"))

    async def get_tenant(self, tenant_id: int) -> Tenant:
        return parse(Tenant, await self._http.get(f"/tenants/{tenant_id}/"))

    async def get_my_tenant(self) -> Tenant:
        return parse(Tenant, await self._http.get("/tenants/me/"))

    async def create_tenant(self, request: CreateTenantRequest | dict[str, Any]) -> Tenant:
        payload = dump_payload(parse(CreateTenantRequest, request))
        return parse(Tenant, await self._http.post("/tenants/", payload))

    async def update_tenant(self, tenant_id: int, changes: UpdateTenantRequest | dict[str, Any]) -> Tenant:
        payload = partial(UpdateTenantRequest, changes)
        return parse(Tenant, await self._http.put(f"/tenants/{tenant_id}/", payload))

    async def delete_tenant(self, tenant_id: int) -> None:
        await self._http.delete(f"/tenants/{tenant_id}/")

    async def get_dashboard_stats(self) -> DashboardStats:
        return parse(DashboardStats, await self._http.get("/dashboard/stats/"))


class SimulatedTenants:
    def __init__(self, store: SimulatedStore, current_user: CurrentUser) -> None:
        self._store = store
        self._current_user = current_user

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        taken = {t["slug"] for t in await self._store.list_records("tenants")}
        slug, n = base, 2
        while slug in taken:
            slug, n = f"{base}-{n}", n + 1
        return slug

    async def list_tenants(self) -> list[Tenant]:
        return parse_list(Tenant, await self._store.list_records("tenants"))

    async def get_tenant(self, tenant_id: int) -> Tenant:
        return parse(Tenant, found(await self._store.get("tenants", tenant_id)))

    async def get_my_tenant(self) -> Tenant:
        user = require_user(self._current_user)
        if user.tenant is None:
            raise not_found_error()
        return await self.get_tenant(user.tenant.id)

    async def create_tenant(self, request: CreateTenantRequest | dict[str, Any]) -> Tenant:
        req = parse(CreateTenantRequest, request)
        record = await self._store.create(
            "tenants",
            {
                "name": req.name,
                "slug": await self._unique_slug(req.name),
                "description": req.description,
                "email": req.email,
                "url": None,
                "uuid": str(uuid.uuid4()),
                "is_active": True,
            },
            stamps=("created_at", "updated_at"),
        )
        return parse(Tenant, record)

    async def update_tenant(self, tenant_id: int, changes: UpdateTenantRequest | dict[str, Any]) -> Tenant:
        payload = partial(UpdateTenantRequest, changes)
        record = await self._store.update("tenants", tenant_id, payload, stamps=("updated_at",))
        return parse(Tenant, found(record))

    async def delete_tenant(self, tenant_id: int) -> None:
        # Hotspots and users keep their tenant id; there is no cascade.
        if not await self._store.delete("tenants", tenant_id):
            raise not_found_error()

    async def get_dashboard_stats(self) -> DashboardStats:
        seeded = await self._store.document("dashboard_stats") or {}
        tenants = await self._store.list_records("tenants")
        online = await self._store.list_records("hotspots", lambda h: h.get("status") == "Online")
        users = await self._store.list_records("users")
        return parse(
            DashboardStats,
            {
                "total_tenants": len(tenants),
                "active_hotspots": len(online),
                "total_users": len(users),
                "monthly_revenue": seeded.get("monthly_revenue", 0),
            },
        )
