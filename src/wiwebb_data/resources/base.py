"""
wiwebb_data.resources.base

Helpers shared by the live and simulated resource implementations.

Responsibilities:
- Run inbound/outbound payloads through the validation gate and raise on failure.
- Produce the same errors a live backend would (404s, 401s, field conflicts).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from wiwebb_data.api.errors import ApiError, not_found_error
from wiwebb_data.api.schemas import User
from wiwebb_data.api.validation import require, validate, validate_list, validate_partial
from wiwebb_data.simulated.store import Record

M = TypeVar("M", bound=BaseModel)

CurrentUser = Callable[[], User | None]


def parse(schema: type[M], data: Any) -> M:
    return require(validate(schema, data))


def parse_list(schema: type[M], data: Any) -> list[M]:
    return require(validate_list(schema, data))


def partial(schema: type[BaseModel], data: Any) -> dict[str, Any]:
    return require(validate_partial(schema, data))


def found(record: Record | None) -> Record:
    if record is None:
        raise not_found_error()
    return record


def not_authenticated() -> ApiError:
    detail = "Authentication credentials were not provided."
    return ApiError(detail, status=401, details={"detail": detail}, structured=True)


def require_user(current_user: CurrentUser) -> User:
    user = current_user()
    if user is None:
        raise not_authenticated()
    return user


def field_error(field: str, message: str) -> ApiError:
    # DRF reports field-level problems as {"field": ["message", ...]} with a 400.
    return ApiError(message, status=400, details={field: [message]}, structured=True)


def match_params(record: Record, params: Mapping[str, Any] | None) -> bool:
    """Filter semantics of the list endpoints: exact match on known fields, others ignored."""

    if not params:
        return True
    for name, expected in params.items():
        if expected is None or name not in record:
            continue
        if str(record[name]) != str(expected):
            return False
    return True


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "tenant"
