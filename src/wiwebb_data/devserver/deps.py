"""
wiwebb_data.devserver.deps

FastAPI dependencies for the development backend.

Responsibilities:
- Resolve `Authorization: Token <key>` (DRF login keys) and `Authorization: Bearer <jwt>`
  into the acting user.
- Bind simulated resources to that user for the duration of one request.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from starlette.status import HTTP_401_UNAUTHORIZED

from wiwebb_data.api.schemas import User
from wiwebb_data.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from wiwebb_data.resources.selector import Resources, simulated_resources
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore

# Raw header: both the `Token` and `Bearer` schemes must reach us unparsed.
_authorization = APIKeyHeader(name="Authorization", auto_error=False)

NO_CREDENTIALS = "Authentication credentials were not provided."


def settings_from_app(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def store_from_app(request: Request) -> SimulatedStore:
    return request.app.state.store  # type: ignore[no-any-return]


def login_keys(request: Request) -> dict[str, int]:
    # DRF token key -> user id; created by /auth/login/ and removed by /auth/logout/.
    return request.app.state.login_keys  # type: ignore[no-any-return]


async def _user_id_for(request: Request, header: str) -> int:
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if not token:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token header.")

    if scheme == "Token":
        user_id = login_keys(request).get(token)
        if user_id is None:
            raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token.")
        return user_id

    if scheme == "Bearer":
        try:
            claims = decode_and_validate(
                cfg=JwtConfig.from_settings(settings_from_app(request)), token=token
            )
        except JwtValidationError as e:
            raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e
        try:
            return int(claims["sub"])
        except (KeyError, ValueError) as e:
            raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from e

    raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unsupported authorization scheme.")


async def current_user(
    request: Request,
    authorization: str | None = Depends(_authorization),
    store: SimulatedStore = Depends(store_from_app),
) -> User:
    if not authorization:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=NO_CREDENTIALS)
    user_id = await _user_id_for(request, authorization)
    record = await store.get("users", user_id)
    if record is None or not record.get("is_active", True):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="User inactive or deleted.")
    return User.model_validate(record)


def resources_for(
    user: User = Depends(current_user),
    store: SimulatedStore = Depends(store_from_app),
) -> Resources:
    return simulated_resources(store, lambda: user)


# --- Module Notes -----------------------------------------------------------
# Every data route depends on `resources_for`, so unauthenticated requests fail with a
# 401 before any resource code runs.
