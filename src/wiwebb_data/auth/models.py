"""
wiwebb_data.auth.models

Auth domain models.

Responsibilities:
- Define `Credential` and `Session` value objects.
- Define coordinator states and identity-provider events.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from wiwebb_data.api.schemas import User

Scheme = Literal["Bearer", "Token"]


@dataclass(frozen=True, slots=True)
class Credential:
    """
    Opaque token plus expiry metadata. `expires_at` is None for tokens that do not expire
    on their own (DRF keys).
    """

    token: str
    scheme: Scheme = "Bearer"
    expires_at: datetime | None = None

    @property
    def header_value(self) -> str:
        return f"{self.scheme} {self.token}"

    def expires_within(self, margin: timedelta, *, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at - margin <= (now or datetime.now(tz=UTC))

    def __repr__(self) -> str:
        # Never render the token itself.
        return f"Credential(scheme={self.scheme!r}, expires_at={self.expires_at!r})"


@dataclass(frozen=True, slots=True)
class Session:
    user: User
    credential: Credential
    issued_at: datetime

    @property
    def subject(self) -> str:
        return str(self.user.id)


class AuthState(enum.StrEnum):
    uninitialized = "uninitialized"
    loading = "loading"
    authenticated = "authenticated"
    unauthenticated = "unauthenticated"


class AuthEvent(enum.StrEnum):
    signed_in = "SIGNED_IN"
    signed_out = "SIGNED_OUT"
    token_refreshed = "TOKEN_REFRESHED"
    user_updated = "USER_UPDATED"


# --- Module Notes -----------------------------------------------------------
# Sessions are immutable; the coordinator replaces its reference instead of mutating fields.
