"""
wiwebb_data.client

Composition root.

Responsibilities:
- Build every shared component exactly once: transport, cache, local storage,
  simulated store (when enabled), identity provider, session coordinator, resources.
- Wire the coordinator into the transport as its credential provider.
- Dispose everything in reverse order.
"""

from __future__ import annotations

from types import TracebackType

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from wiwebb_data.api.errors import ApiError, user_friendly_message
from wiwebb_data.api.query_keys import QueryKey
from wiwebb_data.auth.coordinator import SessionCoordinator
from wiwebb_data.cache.query_cache import QueryCache
from wiwebb_data.observability.logging import configure_logging, get_logger
from wiwebb_data.resources.selector import Resources, select_identity_provider, select_resources
from wiwebb_data.services.data_service import DataService
from wiwebb_data.settings import Settings, get_settings
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.storage.auth_storage import AuthStorage
from wiwebb_data.storage.session import create_engine, create_sessionmaker, init_db
from wiwebb_data.transport.http import ResilientTransport

log = get_logger(__name__)


def _report_query_error(key: QueryKey, error: ApiError) -> None:
    log.warning(
        "query.failed",
        query_key=repr(key),
        kind=str(error.kind),
        status=error.status,
        message=user_friendly_message(error),
    )


def _report_mutation_error(error: ApiError) -> None:
    log.warning(
        "mutation.failed",
        kind=str(error.kind),
        status=error.status,
        message=user_friendly_message(error),
    )


class WiwebbClient:
    """
    One per process. Callers receive the coordinator and data service from here and
    pass them on explicitly; nothing in the package reaches for a global session.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        engine: AsyncEngine,
        transport: ResilientTransport,
        cache: QueryCache,
        store: SimulatedStore | None,
        auth: SessionCoordinator,
        resources: Resources,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.cache = cache
        self.store = store
        self.auth = auth
        self.resources = resources
        self.data = DataService(resources=resources, cache=cache, auth=auth)
        self._engine = engine

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        store: SimulatedStore | None = None,
        start: bool = True,
    ) -> WiwebbClient:
        settings = settings or get_settings()
        configure_logging(service_name=settings.service_name, level=settings.log_level, fmt=settings.log_format)

        engine = create_engine(settings)
        await init_db(engine)
        storage = AuthStorage(create_sessionmaker(engine))

        cache = QueryCache(on_error=_report_query_error, on_mutation_error=_report_mutation_error)
        transport = ResilientTransport(settings=settings, http=http)
        if settings.use_mock_data and store is None:
            store = SimulatedStore.seeded(settings)

        identity = select_identity_provider(settings, transport=transport, store=store)
        auth = SessionCoordinator(identity=identity, cache=cache, storage=storage, settings=settings)
        transport.bind_credentials(auth.get_credential)

        resources = select_resources(
            settings, transport=transport, store=store, current_user=lambda: auth.user
        )
        client = cls(
            settings=settings,
            engine=engine,
            transport=transport,
            cache=cache,
            store=store,
            auth=auth,
            resources=resources,
        )
        if start:
            await auth.start()
        log.info("client.ready", simulated=resources.simulated, auth_state=str(auth.state))
        return client

    async def aclose(self) -> None:
        await self.auth.aclose()
        await self.cache.aclose()
        await self.transport.aclose()
        await self._engine.dispose()

    async def __aenter__(self) -> WiwebbClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
