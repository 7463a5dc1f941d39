"""
wiwebb_data.resources.radius

RADIUS data access.

Responsibilities:
- Manage RADIUS users (radcheck rows) and read groups, live sessions,
  accounting history and post-auth logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from wiwebb_data.api.errors import not_found_error
from wiwebb_data.api.schemas import (
    CreateRadiusUserRequest,
    RadiusGroup,
    RadiusPostAuth,
    RadiusSession,
    RadiusUser,
    UpdateRadiusUserRequest,
)
from wiwebb_data.api.validation import dump_payload
from wiwebb_data.resources.base import field_error, found, match_params, parse, parse_list, partial
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.transport.http import ResilientTransport

Params = Mapping[str, Any] | None

# Returned in place of the stored secret.
MASKED_PASSWORD = "********"


class RadiusResource(Protocol):
    async def list_users(self) -> list[RadiusUser]: ...

    async def get_user(self, user_id: int) -> RadiusUser: ...

    async def create_user(self, request: CreateRadiusUserRequest | dict[str, Any]) -> RadiusUser: ...

    async def update_user(self, user_id: int, changes: UpdateRadiusUserRequest | dict[str, Any]) -> RadiusUser: ...

    async def delete_user(self, user_id: int) -> None: ...

    async def list_groups(self) -> list[RadiusGroup]: ...

    async def list_active_sessions(self) -> list[RadiusSession]: ...

    async def get_accounting(self, params: Params = None) -> list[RadiusSession]: ...

    async def get_post_auth_logs(self, params: Params = None) -> list[RadiusPostAuth]: ...


class LiveRadius:
    def __init__(self, transport: ResilientTransport) -> None:
        self._http = transport

    async def list_users(self) -> list[RadiusUser]:
        return parse_list(RadiusUser, await self._http.get("/radius/users/"))

    async def get_user(self, user_id: int) -> RadiusUser:
        return parse(RadiusUser, await self._http.get(f"/radius/users/{user_id}/"))

    async def create_user(self, request: CreateRadiusUserRequest | dict[str, Any]) -> RadiusUser:
        payload = dump_payload(parse(CreateRadiusUserRequest, request))
        return parse(RadiusUser, await self._http.post("/radius/users/", payload))

    async def update_user(self, user_id: int, changes: UpdateRadiusUserRequest | dict[str, Any]) -> RadiusUser:
        payload = partial(UpdateRadiusUserRequest, changes)
        return parse(RadiusUser, await self._http.put(f"/radius/users/{user_id}/", payload))

    async def delete_user(self, user_id: int) -> None:
        await self._http.delete(f"/radius/users/{user_id}/")

    async def list_groups(self) -> list[RadiusGroup]:
        return parse_list(RadiusGroup, await self._http.get("/radius/groups/"))

    async def list_active_sessions(self) -> list[RadiusSession]:
        return parse_list(RadiusSession, await self._http.get("/radius/active-sessions/"))

    async def get_accounting(self, params: Params = None) -> list[RadiusSession]:
        return parse_list(RadiusSession, await self._http.get("/radius/accounting/", params=params))

    async def get_post_auth_logs(self, params: Params = None) -> list[RadiusPostAuth]:
        return parse_list(RadiusPostAuth, await self._http.get("/radius/post-auth-log/", params=params))


class SimulatedRadius:
    def __init__(self, store: SimulatedStore) -> None:
        self._store = store

    async def _check_unique(self, username: str, *, exclude_id: int | None = None) -> None:
        clash = await self._store.first(
            "radius_users", lambda u: u["username"] == username and u["id"] != exclude_id
        )
        if clash is not None:
            raise field_error("username", "radius user with this username already exists.")

    async def list_users(self) -> list[RadiusUser]:
        return parse_list(RadiusUser, await self._store.list_records("radius_users"))

    async def get_user(self, user_id: int) -> RadiusUser:
        return parse(RadiusUser, found(await self._store.get("radius_users", user_id)))

    async def create_user(self, request: CreateRadiusUserRequest | dict[str, Any]) -> RadiusUser:
        req = parse(CreateRadiusUserRequest, request)
        await self._check_unique(req.username)
        record = await self._store.create(
            "radius_users",
            {
                "username": req.username,
                "attribute": "Cleartext-Password",
                "op": ":=",
                "value": MASKED_PASSWORD,
                "groupname": req.groupname,
            },
            stamps=("created_at",),
        )
        return parse(RadiusUser, record)

    async def update_user(self, user_id: int, changes: UpdateRadiusUserRequest | dict[str, Any]) -> RadiusUser:
        payload = partial(UpdateRadiusUserRequest, changes)
        if payload.get("username"):
            await self._check_unique(payload["username"], exclude_id=user_id)
        if "password" in payload:
            payload.pop("password")
            payload["value"] = MASKED_PASSWORD
        return parse(RadiusUser, found(await self._store.update("radius_users", user_id, payload)))

    async def delete_user(self, user_id: int) -> None:
        if not await self._store.delete("radius_users", user_id):
            raise not_found_error()

    async def list_groups(self) -> list[RadiusGroup]:
        return parse_list(RadiusGroup, await self._store.list_records("radius_groups"))

    async def list_active_sessions(self) -> list[RadiusSession]:
        records = await self._store.list_records(
            "radius_sessions", lambda s: s.get("acctstoptime") is None
        )
        return parse_list(RadiusSession, records)

    async def get_accounting(self, params: Params = None) -> list[RadiusSession]:
        records = await self._store.list_records(
            "radius_accounting", lambda r: match_params(r, params)
        )
        return parse_list(RadiusSession, records)

    async def get_post_auth_logs(self, params: Params = None) -> list[RadiusPostAuth]:
        records = await self._store.list_records(
            "radius_post_auth", lambda r: match_params(r, params)
        )
        return parse_list(RadiusPostAuth, records)
