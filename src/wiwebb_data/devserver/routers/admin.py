"""
wiwebb_data.devserver.routers.admin

Tenant, dashboard and user-administration endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from wiwebb_data.api.schemas import DashboardStats, ListOptions, Tenant, User
from wiwebb_data.devserver.deps import resources_for
from wiwebb_data.resources.selector import Resources

router = APIRouter(tags=["admin"])


# --- tenants -------------------------------------------------------------------------------


@router.get("/tenants/")
async def list_tenants(res: Resources = Depends(resources_for)) -> list[Tenant]:
    return await res.tenants.list_tenants()


@router.post("/tenants/", status_code=201)
async def create_tenant(body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)) -> Tenant:
    return await res.tenants.create_tenant(body)


# Declared before the `{tenant_id}` routes so "me" is not parsed as an id.
@router.get("/tenants/me/")
async def my_tenant(res: Resources = Depends(resources_for)) -> Tenant:
    return await res.tenants.get_my_tenant()


@router.get("/tenants/{tenant_id}/")
async def get_tenant(tenant_id: int, res: Resources = Depends(resources_for)) -> Tenant:
    return await res.tenants.get_tenant(tenant_id)


@router.put("/tenants/{tenant_id}/")
async def update_tenant(
    tenant_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> Tenant:
    return await res.tenants.update_tenant(tenant_id, body)


@router.delete("/tenants/{tenant_id}/", status_code=204)
async def delete_tenant(tenant_id: int, res: Resources = Depends(resources_for)) -> None:
    await res.tenants.delete_tenant(tenant_id)


@router.get("/dashboard/stats/")
async def dashboard_stats(res: Resources = Depends(resources_for)) -> DashboardStats:
    return await res.tenants.get_dashboard_stats()


# --- users ---------------------------------------------------------------------------------


@router.get("/users/")
async def list_users(
    request: Request,
    page: int | None = None,
    page_size: int | None = None,
    ordering: str | None = None,
    res: Resources = Depends(resources_for),
) -> dict[str, Any]:
    options = ListOptions(
        page=page,
        page_size=page_size,
        sort_by=ordering.lstrip("-") if ordering else None,
        sort_order="desc" if ordering and ordering.startswith("-") else "asc",
    )
    result = await res.users.list_users(options)
    next_url = None
    if result.has_more:
        next_url = str(request.url.include_query_params(page=result.page + 1))
    # DRF PageNumberPagination envelope.
    return {
        "count": result.total,
        "next": next_url,
        "previous": None,
        "results": [u.model_dump(mode="json") for u in result.data],
    }


@router.post("/users/", status_code=201)
async def create_user(body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)) -> User:
    return await res.users.create_user(body)


@router.get("/users/{user_id}/")
async def get_user(user_id: int, res: Resources = Depends(resources_for)) -> User:
    return await res.users.get_user(user_id)


@router.patch("/users/{user_id}/")
async def update_user(
    user_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> User:
    return await res.users.update_user(user_id, body)


@router.delete("/users/{user_id}/", status_code=204)
async def delete_user(user_id: int, res: Resources = Depends(resources_for)) -> None:
    await res.users.delete_user(user_id)


@router.post("/users/{user_id}/activate/")
async def activate_user(
    user_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> User:
    return await res.users.activate_user(user_id, body.get("is_active"))  # type: ignore[arg-type]


@router.post("/users/{user_id}/assign-role/")
async def assign_role(
    user_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> User:
    return await res.users.assign_role(user_id, body.get("role"), body.get("tenant"))  # type: ignore[arg-type]


@router.post("/users/{user_id}/set-password/")
async def set_password(
    user_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> dict[str, str]:
    await res.users.set_password(user_id, body.get("password"))  # type: ignore[arg-type]
    return {"detail": "Password set."}
