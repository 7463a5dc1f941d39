"""
wiwebb_data.devserver.routers.network

Hotspot and RADIUS endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from wiwebb_data.api.schemas import Hotspot, HotspotStats, RadiusGroup, RadiusPostAuth, RadiusSession, RadiusUser
from wiwebb_data.devserver.deps import resources_for
from wiwebb_data.resources.selector import Resources

router = APIRouter(tags=["network"])


# --- hotspots ------------------------------------------------------------------------------


@router.get("/hotspots/")
async def list_hotspots(tenant_id: int | None = None, res: Resources = Depends(resources_for)) -> list[Hotspot]:
    return await res.hotspots.list_hotspots(tenant_id)


@router.post("/hotspots/", status_code=201)
async def create_hotspot(body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)) -> Hotspot:
    return await res.hotspots.create_hotspot(body)


@router.get("/hotspots/{hotspot_id}/")
async def get_hotspot(hotspot_id: int, res: Resources = Depends(resources_for)) -> Hotspot:
    return await res.hotspots.get_hotspot(hotspot_id)


@router.put("/hotspots/{hotspot_id}/")
async def update_hotspot(
    hotspot_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> Hotspot:
    return await res.hotspots.update_hotspot(hotspot_id, body)


@router.delete("/hotspots/{hotspot_id}/", status_code=204)
async def delete_hotspot(hotspot_id: int, res: Resources = Depends(resources_for)) -> None:
    await res.hotspots.delete_hotspot(hotspot_id)


@router.get("/hotspots/{hotspot_id}/stats/")
async def hotspot_stats(hotspot_id: int, res: Resources = Depends(resources_for)) -> HotspotStats:
    return await res.hotspots.get_hotspot_stats(hotspot_id)


# --- radius --------------------------------------------------------------------------------


@router.get("/radius/users/")
async def list_radius_users(res: Resources = Depends(resources_for)) -> list[RadiusUser]:
    return await res.radius.list_users()


@router.post("/radius/users/", status_code=201)
async def create_radius_user(body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)) -> RadiusUser:
    return await res.radius.create_user(body)


@router.get("/radius/users/{user_id}/")
async def get_radius_user(user_id: int, res: Resources = Depends(resources_for)) -> RadiusUser:
    return await res.radius.get_user(user_id)


@router.put("/radius/users/{user_id}/")
async def update_radius_user(
    user_id: int, body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> RadiusUser:
    return await res.radius.update_user(user_id, body)


@router.delete("/radius/users/{user_id}/", status_code=204)
async def delete_radius_user(user_id: int, res: Resources = Depends(resources_for)) -> None:
    await res.radius.delete_user(user_id)


@router.get("/radius/groups/")
async def list_radius_groups(res: Resources = Depends(resources_for)) -> list[RadiusGroup]:
    return await res.radius.list_groups()


@router.get("/radius/active-sessions/")
async def list_active_sessions(res: Resources = Depends(resources_for)) -> list[RadiusSession]:
    return await res.radius.list_active_sessions()


@router.get("/radius/accounting/")
async def accounting(request: Request, res: Resources = Depends(resources_for)) -> list[RadiusSession]:
    return await res.radius.get_accounting(dict(request.query_params))


@router.get("/radius/post-auth-log/")
async def post_auth_log(request: Request, res: Resources = Depends(resources_for)) -> list[RadiusPostAuth]:
    return await res.radius.get_post_auth_logs(dict(request.query_params))
