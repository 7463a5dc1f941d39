"""
wiwebb_data.devserver.routers.auth

dj-rest-auth compatible endpoints.

Responsibilities:
- Login/registration returning `{"key": ...}` token keys.
- Logout, current-user read/update, password reset and change.
"""

from __future__ import annotations

import secrets
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from starlette.status import HTTP_400_BAD_REQUEST

from wiwebb_data.api.schemas import LoginResponse, PasswordResetRequest, User
from wiwebb_data.api.validation import require, validate
from wiwebb_data.auth.simulated import authenticate
from wiwebb_data.devserver.deps import current_user, login_keys, store_from_app
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.resources.users import SimulatedUsers
from wiwebb_data.simulated.store import SimulatedStore

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_key(request: Request, user_id: int) -> LoginResponse:
    key = secrets.token_hex(20)
    login_keys(request)[key] = user_id
    return LoginResponse(key=key)


@router.post("/login/")
async def login(
    request: Request,
    body: dict[str, Any] = Body(...),
    store: SimulatedStore = Depends(store_from_app),
) -> LoginResponse:
    login_name = body.get("username") or body.get("email") or ""
    record = await authenticate(store, str(login_name), str(body.get("password") or ""))
    if record is None:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="Unable to log in with provided credentials."
        )
    log.info("devserver.login", user_id=record["id"])
    return _issue_key(request, record["id"])


@router.post("/registration/")
async def register(
    request: Request,
    body: dict[str, Any] = Body(...),
    store: SimulatedStore = Depends(store_from_app),
) -> LoginResponse:
    if body.get("password1") != body.get("password2"):
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="The two password fields didn't match."
        )
    user = await SimulatedUsers(store).create_user(
        {
            "username": body.get("username"),
            "email": body.get("email"),
            "password": body.get("password1"),
            "first_name": body.get("first_name"),
            "last_name": body.get("last_name"),
            "role": "subscriber",
        }
    )
    if body.get("phone_number"):
        await store.update("users", user.id, {"phone_number": body["phone_number"]})
    return _issue_key(request, user.id)


@router.post("/logout/")
async def logout(request: Request, user: User = Depends(current_user)) -> dict[str, str]:
    keys = login_keys(request)
    for key in [k for k, uid in keys.items() if uid == user.id]:
        del keys[key]
    return {"detail": "Successfully logged out."}


@router.get("/user/")
async def read_user(user: User = Depends(current_user)) -> User:
    return user


@router.patch("/user/")
async def update_user(
    body: dict[str, Any] = Body(...),
    user: User = Depends(current_user),
    store: SimulatedStore = Depends(store_from_app),
) -> User:
    return await SimulatedUsers(store).update_user(user.id, body)


@router.post("/password/reset/")
async def password_reset(body: dict[str, Any] = Body(...)) -> dict[str, str]:
    require(validate(PasswordResetRequest, body))
    return {"detail": "Password reset e-mail has been sent."}


@router.post("/password/change/")
async def password_change(
    body: dict[str, Any] = Body(...),
    user: User = Depends(current_user),
    store: SimulatedStore = Depends(store_from_app),
) -> dict[str, str]:
    new_password = body.get("new_password1")
    if new_password != body.get("new_password2"):
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="The two password fields didn't match."
        )
    old_password = body.get("old_password")
    if old_password is not None and store.passwords.get(user.username) != old_password:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail="Your old password was entered incorrectly. Please enter it again.",
        )
    await SimulatedUsers(store).set_password(user.id, str(new_password or ""))
    return {"detail": "New password has been saved."}
