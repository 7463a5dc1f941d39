"""
wiwebb_data.resources.users

User administration.

Responsibilities:
- Paginated user listing (DRF `count/next/results` on the wire).
- Create, read, update and delete users; activate/deactivate, assign roles, set passwords.
"""

from __future__ import annotations

from typing import Any, Protocol

from wiwebb_data.api.errors import not_found_error
from wiwebb_data.api.schemas import (
    ActivateUserRequest,
    AssignRoleRequest,
    CreateUserRequest,
    ListOptions,
    SetPasswordRequest,
    UpdateUserRequest,
    User,
    UserPage,
    profile_changes,
)
from wiwebb_data.api.validation import dump_payload
from wiwebb_data.resources.base import field_error, found, parse, parse_list, partial
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.transport.http import ResilientTransport

Options = ListOptions | dict[str, Any] | None


class UsersResource(Protocol):
    async def list_users(self, options: Options = None) -> UserPage: ...

    async def create_user(self, request: CreateUserRequest | dict[str, Any]) -> User: ...

    async def get_user(self, user_id: int) -> User: ...

    async def update_user(self, user_id: int, changes: UpdateUserRequest | dict[str, Any]) -> User: ...

    async def activate_user(self, user_id: int, is_active: bool) -> User: ...

    async def assign_role(self, user_id: int, role: str, tenant: int | None = None) -> User: ...

    async def set_password(self, user_id: int, password: str) -> None: ...

    async def delete_user(self, user_id: int) -> None: ...


def _options(options: Options) -> ListOptions:
    return parse(ListOptions, options) if options is not None else ListOptions()


class LiveUsers:
    def __init__(self, transport: ResilientTransport) -> None:
        self._http = transport

    async def list_users(self, options: Options = None) -> UserPage:
        opts = _options(options)
        data = await self._http.get("/users/", params=opts.as_params())
        if isinstance(data, list):
            # Unpaginated deployments return a bare list.
            data = {"count": len(data), "next": None, "results": data}
        data = data or {}
        users = parse_list(User, data.get("results") or [])
        return UserPage(
            data=users,
            total=data.get("count") or 0,
            page=opts.page or 1,
            page_size=opts.page_size or len(users),
            has_more=bool(data.get("next")),
        )

    async def create_user(self, request: CreateUserRequest | dict[str, Any]) -> User:
        payload = dump_payload(parse(CreateUserRequest, request))
        return parse(User, await self._http.post("/users/", payload))

    async def get_user(self, user_id: int) -> User:
        return parse(User, await self._http.get(f"/users/{user_id}/"))

    async def update_user(self, user_id: int, changes: UpdateUserRequest | dict[str, Any]) -> User:
        payload = profile_changes(partial(UpdateUserRequest, changes))
        return parse(User, await self._http.patch(f"/users/{user_id}/", payload))

    async def activate_user(self, user_id: int, is_active: bool) -> User:
        req = parse(ActivateUserRequest, {"is_active": is_active})
        return parse(User, await self._http.post(f"/users/{user_id}/activate/", dump_payload(req)))

    async def assign_role(self, user_id: int, role: str, tenant: int | None = None) -> User:
        req = parse(AssignRoleRequest, {"role": role, "tenant": tenant})
        return parse(User, await self._http.post(f"/users/{user_id}/assign-role/", dump_payload(req)))

    async def set_password(self, user_id: int, password: str) -> None:
        req = parse(SetPasswordRequest, {"password": password})
        await self._http.post(f"/users/{user_id}/set-password/", dump_payload(req))

    async def delete_user(self, user_id: int) -> None:
        await self._http.delete(f"/users/{user_id}/")


class SimulatedUsers:
    def __init__(self, store: SimulatedStore) -> None:
        self._store = store

    async def _tenant_ref(self, tenant_id: int | None) -> dict[str, Any] | None:
        if tenant_id is None:
            return None
        tenant = await self._store.get("tenants", tenant_id)
        if tenant is None:
            raise field_error("tenant", f'Invalid pk "{tenant_id}" - object does not exist.')
        return {k: tenant[k] for k in ("id", "uuid", "name", "slug")}

    async def _check_unique(self, *, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
        for record in await self._store.list_records("users", lambda u: u["id"] != exclude_id):
            if username and record["username"] == username:
                raise field_error("username", "A user with that username already exists.")
            if email and record["email"].lower() == email.lower():
                raise field_error("email", "A user with that email already exists.")

    async def list_users(self, options: Options = None) -> UserPage:
        opts = _options(options)
        records = await self._store.list_records("users")
        if opts.sort_by:
            key = opts.sort_by
            records.sort(
                key=lambda r: (r.get(key) is None, str(r.get(key, ""))),
                reverse=opts.sort_order == "desc",
            )
        total = len(records)
        page = opts.page or 1
        if opts.page_size:
            start = (page - 1) * opts.page_size
            window = records[start : start + opts.page_size]
            has_more = start + opts.page_size < total
        else:
            window = records
            has_more = False
        users = parse_list(User, window)
        return UserPage(
            data=users,
            total=total,
            page=page,
            page_size=opts.page_size or len(users),
            has_more=has_more,
        )

    async def create_user(self, request: CreateUserRequest | dict[str, Any]) -> User:
        req = parse(CreateUserRequest, request)
        await self._check_unique(username=req.username, email=req.email)
        record = await self._store.create(
            "users",
            {
                "username": req.username,
                "email": req.email,
                "first_name": req.first_name or "",
                "last_name": req.last_name or "",
                "role": req.role,
                "is_staff": req.role in ("superadmin", "admin"),
                "is_superuser": req.role == "superadmin",
                "is_active": True if req.is_active is None else req.is_active,
                "tenant": await self._tenant_ref(req.tenant),
            },
            stamps=("date_joined",),
        )
        self._store.passwords[req.username] = req.password
        return parse(User, record)

    async def get_user(self, user_id: int) -> User:
        return parse(User, found(await self._store.get("users", user_id)))

    async def update_user(self, user_id: int, changes: UpdateUserRequest | dict[str, Any]) -> User:
        payload = profile_changes(partial(UpdateUserRequest, changes))
        before = found(await self._store.get("users", user_id))
        await self._check_unique(
            username=payload.get("username"), email=payload.get("email"), exclude_id=user_id
        )
        record = found(await self._store.update("users", user_id, payload))
        if record["username"] != before["username"] and before["username"] in self._store.passwords:
            self._store.passwords[record["username"]] = self._store.passwords.pop(before["username"])
        return parse(User, record)

    async def activate_user(self, user_id: int, is_active: bool) -> User:
        req = parse(ActivateUserRequest, {"is_active": is_active})
        return parse(User, found(await self._store.update("users", user_id, {"is_active": req.is_active})))

    async def assign_role(self, user_id: int, role: str, tenant: int | None = None) -> User:
        req = parse(AssignRoleRequest, {"role": role, "tenant": tenant})
        found(await self._store.get("users", user_id))
        changes = {
            "role": req.role,
            "is_staff": req.role in ("superadmin", "admin"),
            "is_superuser": req.role == "superadmin",
            "tenant": await self._tenant_ref(req.tenant),
        }
        return parse(User, found(await self._store.update("users", user_id, changes)))

    async def set_password(self, user_id: int, password: str) -> None:
        req = parse(SetPasswordRequest, {"password": password})
        record = found(await self._store.get("users", user_id))
        self._store.passwords[record["username"]] = req.password

    async def delete_user(self, user_id: int) -> None:
        record = await self._store.get("users", user_id)
        if record is None or not await self._store.delete("users", user_id):
            raise not_found_error()
        self._store.passwords.pop(record["username"], None)
