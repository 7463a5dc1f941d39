"""
tests.test_auth_storage

Persisted auth state.

Responsibilities:
- Round-trip a session through the local SQLite store.
- Clear both keys together; tolerate corrupt snapshots.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from wiwebb_data.api.schemas import User
from wiwebb_data.auth.models import Credential, Session
from wiwebb_data.settings import Settings
from wiwebb_data.storage.auth_storage import AUTH_TOKEN_KEY, AuthStorage
from wiwebb_data.storage.models import StoredValue
from wiwebb_data.storage.session import create_engine, create_sessionmaker, init_db


@pytest_asyncio.fixture
async def storage(settings: Settings) -> AsyncIterator[AuthStorage]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield AuthStorage(create_sessionmaker(engine))
    finally:
        await engine.dispose()


def _session() -> Session:
    user = User(id=3, username="guest", email="guest@wiwebb.io", role="subscriber")
    credential = Credential(
        token="k3y",
        scheme="Bearer",
        expires_at=datetime(2026, 6, 1, 12, 0, tzinfo=UTC),
    )
    return Session(user=user, credential=credential, issued_at=datetime(2026, 6, 1, 11, 0, tzinfo=UTC))


@pytest.mark.asyncio
async def test_empty_storage_has_no_session(storage: AuthStorage) -> None:
    assert await storage.load_session() is None
    assert await storage.get_auth_token() is None
    assert await storage.get_user_data() is None


@pytest.mark.asyncio
async def test_session_round_trip(storage: AuthStorage) -> None:
    session = _session()
    await storage.save_session(session)

    restored = await storage.load_session()
    assert restored is not None
    assert restored.credential == session.credential
    assert restored.issued_at == session.issued_at
    assert restored.user.model_dump() == session.user.model_dump()
    assert await storage.get_auth_token() == "k3y"
    user = await storage.get_user_data()
    assert user is not None and user.username == "guest"


@pytest.mark.asyncio
async def test_saving_again_overwrites(storage: AuthStorage) -> None:
    first = _session()
    await storage.save_session(first)
    later = Session(
        user=first.user.model_copy(update={"first_name": "Gwen"}),
        credential=Credential(token="n3w", scheme="Token"),
        issued_at=first.issued_at + timedelta(hours=1),
    )
    await storage.save_session(later)

    restored = await storage.load_session()
    assert restored is not None
    assert restored.credential == Credential(token="n3w", scheme="Token")
    assert restored.user.first_name == "Gwen"


@pytest.mark.asyncio
async def test_clear_all_removes_both_keys(storage: AuthStorage) -> None:
    await storage.save_session(_session())
    await storage.clear_all()
    assert await storage.load_session() is None
    assert await storage.get_auth_token() is None
    assert await storage.get_user_data() is None


@pytest.mark.asyncio
async def test_corrupt_snapshot_is_ignored(storage: AuthStorage, settings: Settings) -> None:
    await storage.save_session(_session())
    engine = create_engine(settings)
    try:
        async with create_sessionmaker(engine)() as db:
            await db.merge(StoredValue(key=AUTH_TOKEN_KEY, value="{not json"))
            await db.commit()
    finally:
        await engine.dispose()

    assert await storage.load_session() is None
    assert await storage.get_auth_token() is None
