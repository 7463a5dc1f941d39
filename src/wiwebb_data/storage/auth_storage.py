"""
wiwebb_data.storage.auth_storage

Persisted auth state.

Responsibilities:
- Save/load the credential and last-known user profile under two fixed keys.
- Clear both keys together in one transaction.
"""

from __future__ import annotations

import json
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wiwebb_data.api.schemas import User
from wiwebb_data.auth.models import Credential, Session
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.storage.models import StoredValue

log = get_logger(__name__)

AUTH_TOKEN_KEY = "authToken"
USER_DATA_KEY = "userData"


class AuthStorage:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save_session(self, session: Session) -> None:
        credential = session.credential
        token_doc = {
            "token": credential.token,
            "scheme": credential.scheme,
            "expires_at": credential.expires_at.isoformat() if credential.expires_at else None,
            "issued_at": session.issued_at.isoformat(),
        }
        async with self._session_factory() as db:
            await db.merge(StoredValue(key=AUTH_TOKEN_KEY, value=json.dumps(token_doc)))
            await db.merge(StoredValue(key=USER_DATA_KEY, value=session.user.model_dump_json()))
            await db.commit()

    async def load_session(self) -> Session | None:
        """Restore a session without a network round trip; None if either key is missing."""

        raw = await self._read(AUTH_TOKEN_KEY, USER_DATA_KEY)
        if raw is None or AUTH_TOKEN_KEY not in raw or USER_DATA_KEY not in raw:
            return None
        try:
            token_doc = json.loads(raw[AUTH_TOKEN_KEY])
            user = User.model_validate_json(raw[USER_DATA_KEY])
            expires_at = token_doc.get("expires_at")
            credential = Credential(
                token=token_doc["token"],
                scheme=token_doc.get("scheme", "Token"),
                expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            )
            issued_at = datetime.fromisoformat(token_doc["issued_at"])
        except (ValueError, KeyError, ValidationError) as e:
            log.warning("auth_storage.corrupt_snapshot", error=type(e).__name__)
            return None
        return Session(user=user, credential=credential, issued_at=issued_at)

    async def get_auth_token(self) -> str | None:
        raw = await self._read(AUTH_TOKEN_KEY)
        if not raw or AUTH_TOKEN_KEY not in raw:
            return None
        try:
            return json.loads(raw[AUTH_TOKEN_KEY])["token"]
        except (ValueError, KeyError):
            return None

    async def get_user_data(self) -> User | None:
        raw = await self._read(USER_DATA_KEY)
        if not raw or USER_DATA_KEY not in raw:
            return None
        try:
            return User.model_validate_json(raw[USER_DATA_KEY])
        except ValidationError:
            return None

    async def clear_all(self) -> None:
        # Both keys go in one statement/transaction so a relaunch never sees half a session.
        async with self._session_factory() as db:
            await db.execute(
                delete(StoredValue).where(StoredValue.key.in_([AUTH_TOKEN_KEY, USER_DATA_KEY]))
            )
            await db.commit()

    async def _read(self, *keys: str) -> dict[str, str] | None:
        try:
            async with self._session_factory() as db:
                rows = await db.execute(select(StoredValue).where(StoredValue.key.in_(keys)))
                return {row.key: row.value for row in rows.scalars()}
        except SQLAlchemyError as e:
            # Reads degrade to "nothing stored"; writes propagate.
            log.error("auth_storage.read_failed", error=str(e))
            return None


# --- Module Notes -----------------------------------------------------------
# Only the session coordinator calls the write methods; other components never persist
# credentials.
