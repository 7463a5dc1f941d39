"""
wiwebb_data.auth.simulated

Identity provider backed by the simulated store.

Responsibilities:
- Authenticate against the store's seeded accounts.
- Issue short-lived Bearer JWTs and re-issue them on refresh.
- Emit the same events as a remote provider so the coordinator cannot tell them apart.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from wiwebb_data.api.errors import ApiError, normalize_identity_error
from wiwebb_data.api.schemas import (
    PasswordChangeRequest,
    PasswordResetRequest,
    SignInRequest,
    SignUpRequest,
    UpdateProfileRequest,
    User,
    profile_changes,
)
from wiwebb_data.api.validation import require, validate, validate_partial
from wiwebb_data.auth.identity import BaseIdentityProvider
from wiwebb_data.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate, issue_token, read_expiry
from wiwebb_data.auth.models import AuthEvent, Credential, Session
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore

log = get_logger(__name__)


def _invalid_credentials() -> ApiError:
    return normalize_identity_error(
        {"message": "Invalid login credentials", "status": 400, "code": "invalid_credentials"}
    )


def _not_signed_in() -> ApiError:
    return normalize_identity_error({"message": "Not signed in", "status": 401, "code": "not_authenticated"})


def roles_for(user: User) -> list[str]:
    roles = [user.role]
    if user.is_staff:
        roles.append("staff")
    return roles


async def authenticate(store: SimulatedStore, login_name: str, password: str) -> dict[str, Any] | None:
    """Active account matching username or email and password, else None."""

    needle = login_name.lower()
    record = await store.first(
        "users", lambda u: u["username"].lower() == needle or u["email"].lower() == needle
    )
    if record is None or not record.get("is_active", True):
        return None
    if store.passwords.get(record["username"]) != password:
        return None
    return record


class SimulatedIdentityProvider(BaseIdentityProvider):
    def __init__(self, store: SimulatedStore, settings: Settings) -> None:
        super().__init__()
        self._store = store
        self._jwt = JwtConfig.from_settings(settings)
        self._ttl = timedelta(seconds=settings.mock_token_ttl_s)

    def _mint(self, user: User) -> Session:
        token = issue_token(cfg=self._jwt, subject=str(user.id), roles=roles_for(user), ttl=self._ttl)
        credential = Credential(token=token, scheme="Bearer", expires_at=read_expiry(token))
        return Session(user=user, credential=credential, issued_at=datetime.now(tz=UTC))

    async def _find_account(self, login_name: str) -> dict[str, Any] | None:
        needle = login_name.lower()
        return await self._store.first(
            "users",
            lambda u: u["username"].lower() == needle or u["email"].lower() == needle,
        )

    async def get_session(self, *, stored: Session | None = None) -> Session | None:
        if self._current is None and stored is not None:
            if stored.credential.scheme != "Bearer":
                return None
            try:
                decode_and_validate(cfg=self._jwt, token=stored.credential.token)
            except JwtValidationError as e:
                log.info("identity.stored_session_rejected", reason=str(e))
                return None
            self._current = stored
        return self._current

    async def refresh_session(self) -> Session | None:
        if self._current is None:
            return None
        record = await self._store.get("users", self._current.user.id)
        if record is None or not record.get("is_active", True):
            raise _not_signed_in()
        self._current = self._mint(require(validate(User, record)))
        await self._emit(AuthEvent.token_refreshed, self._current)
        return self._current

    async def sign_in(self, request: SignInRequest | dict[str, Any]) -> Session:
        creds = require(validate(SignInRequest, request))
        record = await authenticate(self._store, creds.login_name, creds.password)
        if record is None:
            self._current = None
            raise _invalid_credentials()
        session = self._mint(require(validate(User, record)))
        self._current = session
        await self._emit(AuthEvent.signed_in, session)
        return session

    async def sign_up(self, request: SignUpRequest | dict[str, Any]) -> Session:
        req = require(validate(SignUpRequest, request))
        if await self._find_account(req.username) or await self._find_account(req.email):
            raise normalize_identity_error(
                {"message": "A user with that username or email already exists.", "status": 400}
            )
        record = await self._store.create(
            "users",
            {
                "username": req.username,
                "email": req.email,
                "first_name": req.first_name,
                "last_name": req.last_name,
                "phone_number": req.phone,
                "role": "subscriber",
                "is_staff": False,
                "is_superuser": False,
                "is_active": True,
                "tenant": None,
            },
            stamps=("date_joined",),
        )
        self._store.passwords[req.username] = req.password
        session = self._mint(require(validate(User, record)))
        self._current = session
        await self._emit(AuthEvent.signed_in, session)
        return session

    async def sign_out(self) -> None:
        self._current = None
        await self._emit(AuthEvent.signed_out, None)

    async def reset_password(self, email: str) -> None:
        req = require(validate(PasswordResetRequest, {"email": email}))
        # Unknown addresses succeed silently, as a real provider would not reveal them.
        log.info("identity.password_reset_requested", known=bool(await self._find_account(req.email)))

    async def update_password(self, new_password: str, *, old_password: str | None = None) -> None:
        if self._current is None:
            raise _not_signed_in()
        req = require(
            validate(PasswordChangeRequest, {"new_password": new_password, "old_password": old_password})
        )
        username = self._current.user.username
        if req.old_password is not None and self._store.passwords.get(username) != req.old_password:
            raise _invalid_credentials()
        self._store.passwords[username] = req.new_password

    async def update_user(self, changes: UpdateProfileRequest | dict[str, Any]) -> User:
        if self._current is None:
            raise _not_signed_in()
        payload = profile_changes(require(validate_partial(UpdateProfileRequest, changes)))
        old_username = self._current.user.username
        record = await self._store.update("users", self._current.user.id, payload)
        if record is None:
            raise _not_signed_in()
        user = require(validate(User, record))
        if user.username != old_username and old_username in self._store.passwords:
            self._store.passwords[user.username] = self._store.passwords.pop(old_username)
        self._current = Session(
            user=user, credential=self._current.credential, issued_at=self._current.issued_at
        )
        await self._emit(AuthEvent.user_updated, self._current)
        return user


# --- Module Notes -----------------------------------------------------------
# The JWT secret is shared with the dev server, so tokens minted here are accepted by
# `devserver` Bearer auth as well.
