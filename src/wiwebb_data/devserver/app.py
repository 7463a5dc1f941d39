"""
wiwebb_data.devserver.app

FastAPI app factory for the development backend.

Responsibilities:
- Serve the REST endpoints from a simulated store so the live data path can run
  end-to-end without the production backend.
- Render `ApiError` as DRF-style `{"detail": ...}` bodies.
- Register request-context middleware and routers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wiwebb_data.api.errors import ApiError
from wiwebb_data.devserver.routers.admin import router as admin_router
from wiwebb_data.devserver.routers.auth import router as auth_router
from wiwebb_data.devserver.routers.billing import router as billing_router
from wiwebb_data.devserver.routers.health import router as health_router
from wiwebb_data.devserver.routers.network import router as network_router
from wiwebb_data.observability.logging import configure_logging, get_logger
from wiwebb_data.observability.middleware import RequestContextMiddleware
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore

log = get_logger(__name__)

API_PREFIX = "/api/v1"


def create_app(*, settings: Settings, store: SimulatedStore | None = None) -> FastAPI:
    configure_logging(
        service_name=f"{settings.service_name}-devserver", level=settings.log_level, fmt=settings.log_format
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, prefix=API_PREFIX)
        yield
        log.info("shutdown")

    app = FastAPI(
        lifespan=lifespan,
        title="Wiwebb development backend",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.store = store or SimulatedStore.seeded(settings)
    app.state.login_keys = {}

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(network_router, prefix=API_PREFIX)
    app.include_router(billing_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)

    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        body: dict[str, object] = {"detail": exc.message}
        if exc.code:
            body["code"] = exc.code
        if isinstance(exc.details, dict) and exc.status == 400:
            # Field errors ride along the way DRF reports them.
            body.update({k: v for k, v in exc.details.items() if k != "detail"})
        log.info("devserver.api_error", status=exc.status, kind=str(exc.kind))
        return JSONResponse(status_code=exc.status or 500, content=body)

    return app


# --- Module Notes -----------------------------------------------------------
# The routers reuse the simulated resource implementations, so the dev server and the
# in-process simulated backend cannot drift apart.
