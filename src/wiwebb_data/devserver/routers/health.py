"""
wiwebb_data.devserver.routers.health

Liveness endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from wiwebb_data.devserver.deps import store_from_app
from wiwebb_data.simulated.store import SimulatedStore

router = APIRouter()


@router.get("/healthz")
async def healthz(store: SimulatedStore = Depends(store_from_app)) -> dict[str, object]:
    return {"status": "ok", "collections": {name: len(c) for name, c in store.collections.items()}}
