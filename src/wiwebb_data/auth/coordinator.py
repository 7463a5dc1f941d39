"""
wiwebb_data.auth.coordinator

Session/auth coordinator.

Responsibilities:
- Own the single current session and the auth state machine.
- Restore a persisted session at start-up without a network round trip.
- Keep the request cache consistent with identity: purge on sign-out, targeted
  invalidation on sign-in, refresh and profile updates.
- Hand the transport a fresh credential, refreshing it when it is about to expire.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from wiwebb_data.api.errors import ApiError
from wiwebb_data.api.query_keys import session_scoped
from wiwebb_data.api.schemas import SignInRequest, SignUpRequest, UpdateProfileRequest, User
from wiwebb_data.auth.identity import IdentityProvider
from wiwebb_data.auth.models import AuthEvent, AuthState, Credential, Session
from wiwebb_data.cache.query_cache import QueryCache
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.settings import Settings
from wiwebb_data.storage.auth_storage import AuthStorage

log = get_logger(__name__)


class SessionCoordinator:
    """
    Built once by the composition root and passed by reference. It is the only
    component that mutates session state or writes persisted auth data.
    """

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        cache: QueryCache,
        storage: AuthStorage,
        settings: Settings,
    ) -> None:
        self._identity = identity
        self._cache = cache
        self._storage = storage
        self._refresh_margin = timedelta(seconds=settings.token_refresh_margin_s)
        self._session: Session | None = None
        self._state = AuthState.uninitialized
        self._unsubscribe: Callable[[], None] | None = None
        self._refresh_lock = asyncio.Lock()

    # --- read surface --------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user(self) -> User | None:
        return self._session.user if self._session else None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.authenticated

    @property
    def is_loading(self) -> bool:
        return self._state in (AuthState.uninitialized, AuthState.loading)

    # --- lifecycle -----------------------------------------------------------------------

    async def start(self) -> AuthState:
        if self._state is not AuthState.uninitialized:
            return self._state
        self._state = AuthState.loading
        self._unsubscribe = self._identity.subscribe(self._on_event)

        stored = await self._storage.load_session()
        try:
            session = await self._identity.get_session(stored=stored)
        except ApiError as e:
            log.warning("auth.restore_failed", kind=str(e.kind), status=e.status)
            session = None

        if session is not None:
            self._session = session
            self._state = AuthState.authenticated
        else:
            self._state = AuthState.unauthenticated
            if stored is not None:
                # The provider rejected the snapshot; do not offer it again on next launch.
                await self._clear_storage()
        log.info("auth.started", state=str(self._state), restored=stored is not None)
        return self._state

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- credential accessor -------------------------------------------------------------

    async def get_credential(self) -> Credential | None:
        session = self._session
        if session is None:
            return None
        if session.credential.expires_within(self._refresh_margin):
            async with self._refresh_lock:
                # Another caller may have refreshed while this one waited.
                current = self._session
                if current is not None and current.credential.expires_within(self._refresh_margin):
                    await self.refresh()
                session = self._session
        return session.credential if session else None

    async def refresh(self) -> Session | None:
        """Re-fetch the session. Failures are logged; state is left as it was."""

        try:
            return await self._identity.refresh_session()
        except ApiError as e:
            log.warning("auth.refresh_failed", kind=str(e.kind), status=e.status)
            return self._session

    # --- entry points --------------------------------------------------------------------

    async def sign_in(self, request: SignInRequest | dict[str, Any]) -> Session:
        return await self._identity.sign_in(request)

    async def sign_up(self, request: SignUpRequest | dict[str, Any]) -> Session:
        return await self._identity.sign_up(request)

    async def sign_out(self) -> None:
        await self._identity.sign_out()

    async def reset_password(self, email: str) -> None:
        await self._identity.reset_password(email)

    async def update_password(self, new_password: str, *, old_password: str | None = None) -> None:
        await self._identity.update_password(new_password, old_password=old_password)

    async def update_profile(self, changes: UpdateProfileRequest | dict[str, Any]) -> User:
        return await self._identity.update_user(changes)

    # --- event handling ------------------------------------------------------------------

    async def _on_event(self, event: AuthEvent, session: Session | None) -> None:
        if event is AuthEvent.signed_out:
            # State flip and purge happen before the first await, so no reader can see
            # cached data belonging to the signed-out user.
            self._session = None
            self._state = AuthState.unauthenticated
            self._cache.clear()
            await self._clear_storage()
            return

        if session is None:
            return

        previous = self._session
        self._session = session
        self._state = AuthState.authenticated
        if previous is not None and previous.subject != session.subject:
            # A different user: nothing cached for the previous one may survive.
            self._cache.clear()
        else:
            for prefix in session_scoped():
                self._cache.invalidate(prefix)
        try:
            await self._storage.save_session(session)
        except SQLAlchemyError as e:
            log.error("auth.storage_save_failed", error=str(e))

    async def _clear_storage(self) -> None:
        try:
            await self._storage.clear_all()
        except SQLAlchemyError as e:
            log.error("auth.storage_clear_failed", error=str(e))
