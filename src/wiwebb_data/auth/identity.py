"""
wiwebb_data.auth.identity

Identity-provider boundary.

Responsibilities:
- Define the `IdentityProvider` protocol the session coordinator talks to.
- Fan out auth events (signed in/out, token refreshed, user updated) to listeners.
- Implement the DRF token flow (`/auth/...` endpoints) over the shared transport.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol

from wiwebb_data.api.errors import ApiError, normalize_identity_error
from wiwebb_data.api.schemas import (
    LoginResponse,
    PasswordChangeRequest,
    PasswordResetRequest,
    SignInRequest,
    SignUpRequest,
    UpdateProfileRequest,
    User,
    profile_changes,
)
from wiwebb_data.api.validation import dump_payload, require, validate, validate_partial
from wiwebb_data.auth.models import AuthEvent, Credential, Session
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.settings import Settings
from wiwebb_data.transport.http import ResilientTransport

log = get_logger(__name__)

AuthListener = Callable[[AuthEvent, Session | None], Awaitable[None]]


class IdentityProvider(Protocol):
    def subscribe(self, listener: AuthListener) -> Callable[[], None]: ...

    async def get_session(self, *, stored: Session | None = None) -> Session | None: ...

    async def refresh_session(self) -> Session | None: ...

    async def sign_in(self, request: SignInRequest | dict[str, Any]) -> Session: ...

    async def sign_up(self, request: SignUpRequest | dict[str, Any]) -> Session: ...

    async def sign_out(self) -> None: ...

    async def reset_password(self, email: str) -> None: ...

    async def update_password(self, new_password: str, *, old_password: str | None = None) -> None: ...

    async def update_user(self, changes: UpdateProfileRequest | dict[str, Any]) -> User: ...


class BaseIdentityProvider:
    """Listener registry plus the provider's view of the current session."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []
        self._current: Session | None = None

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: AuthEvent, session: Session | None) -> None:
        log.info("identity.event", auth_event=str(event), subject=session.subject if session else None)
        for listener in list(self._listeners):
            await listener(event, session)


class DjangoIdentityProvider(BaseIdentityProvider):
    """
    dj-rest-auth token flow: `POST /auth/login/` returns `{"key": ...}`, which is then
    sent as `Authorization: Token <key>`. Keys do not expire on their own.
    """

    def __init__(self, transport: ResilientTransport, settings: Settings) -> None:
        super().__init__()
        self._transport = transport
        self._settings = settings

    def _url(self, path: str) -> str:
        # A separate identity host is addressed with absolute URLs; otherwise paths are
        # relative to the API base URL.
        if self._settings.identity_base_url:
            return self._settings.identity_base_url.rstrip("/") + path
        return path

    def _headers(self, credential: Credential | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if credential is not None:
            headers["Authorization"] = credential.header_value
        if self._settings.identity_api_key:
            headers["X-Api-Key"] = self._settings.identity_api_key
        return headers

    async def _fetch_user(self, credential: Credential) -> User:
        data = await self._transport.get(self._url("/auth/user/"), headers=self._headers(credential))
        return require(validate(User, data))

    async def _open_session(self, key: str) -> Session:
        credential = Credential(token=key, scheme="Token")
        user = await self._fetch_user(credential)
        return Session(user=user, credential=credential, issued_at=datetime.now(tz=UTC))

    async def get_session(self, *, stored: Session | None = None) -> Session | None:
        if stored is not None and self._current is None:
            self._current = stored
        return self._current

    async def refresh_session(self) -> Session | None:
        """DRF keys cannot be re-minted; refreshing re-reads the profile behind the key."""

        if self._current is None:
            return None
        user = await self._fetch_user(self._current.credential)
        self._current = Session(
            user=user, credential=self._current.credential, issued_at=self._current.issued_at
        )
        await self._emit(AuthEvent.user_updated, self._current)
        return self._current

    async def sign_in(self, request: SignInRequest | dict[str, Any]) -> Session:
        creds = require(validate(SignInRequest, request))
        try:
            data = await self._transport.post(
                self._url("/auth/login/"),
                {"username": creds.login_name, "password": creds.password},
                headers=self._headers(),
                auth=False,
            )
            login = require(validate(LoginResponse, data))
            session = await self._open_session(login.key)
        except ApiError:
            self._current = None
            raise
        self._current = session
        await self._emit(AuthEvent.signed_in, session)
        return session

    async def sign_up(self, request: SignUpRequest | dict[str, Any]) -> Session:
        req = require(validate(SignUpRequest, request))
        payload = {
            "username": req.username,
            "email": req.email,
            "password1": req.password,
            "password2": req.password,
            "first_name": req.first_name,
            "last_name": req.last_name,
        }
        if req.phone:
            payload["phone_number"] = req.phone
        data = await self._transport.post(
            self._url("/auth/registration/"), payload, headers=self._headers(), auth=False
        )
        login = require(validate(LoginResponse, data))
        session = await self._open_session(login.key)
        self._current = session
        await self._emit(AuthEvent.signed_in, session)
        return session

    async def sign_out(self) -> None:
        current = self._current
        try:
            if current is not None:
                await self._transport.post(
                    self._url("/auth/logout/"), headers=self._headers(current.credential)
                )
        except ApiError as e:
            # The server-side key may already be gone; local sign-out proceeds regardless.
            log.warning("identity.logout_failed", status=e.status, kind=str(e.kind))
        finally:
            self._current = None
            await self._emit(AuthEvent.signed_out, None)

    async def reset_password(self, email: str) -> None:
        req = require(validate(PasswordResetRequest, {"email": email}))
        await self._transport.post(
            self._url("/auth/password/reset/"), dump_payload(req), headers=self._headers(), auth=False
        )

    async def update_password(self, new_password: str, *, old_password: str | None = None) -> None:
        if self._current is None:
            raise normalize_identity_error({"message": "Not signed in", "status": 401})
        req = require(
            validate(PasswordChangeRequest, {"new_password": new_password, "old_password": old_password})
        )
        payload = {"new_password1": req.new_password, "new_password2": req.new_password}
        if req.old_password:
            payload["old_password"] = req.old_password
        await self._transport.post(
            self._url("/auth/password/change/"),
            payload,
            headers=self._headers(self._current.credential),
        )

    async def update_user(self, changes: UpdateProfileRequest | dict[str, Any]) -> User:
        if self._current is None:
            raise normalize_identity_error({"message": "Not signed in", "status": 401})
        payload = profile_changes(require(validate_partial(UpdateProfileRequest, changes)))
        data = await self._transport.patch(
            self._url("/auth/user/"), payload, headers=self._headers(self._current.credential)
        )
        user = require(validate(User, data))
        self._current = Session(
            user=user, credential=self._current.credential, issued_at=self._current.issued_at
        )
        await self._emit(AuthEvent.user_updated, self._current)
        return user


# --- Module Notes -----------------------------------------------------------
# Providers never persist anything; the coordinator reacts to their events and owns
# storage. `get_session(stored=...)` is how a restored session is handed back in.
