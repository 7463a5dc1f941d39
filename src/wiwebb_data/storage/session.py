"""
wiwebb_data.storage.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine from settings.
- Create the async sessionmaker with safe defaults.
- Create tables on first use.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from wiwebb_data.settings import Settings
from wiwebb_data.storage.base import Base


def create_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.storage_url,
        pool_pre_ping=True,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False avoids surprising lazy loads after commits.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    # The store is a single local table; create-all is the whole migration story.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
