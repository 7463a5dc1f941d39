"""
wiwebb_data.api.validation

Schema validation gate.

Responsibilities:
- Check every outbound and inbound payload against its declared shape.
- Return a tagged result (`Valid` / `Invalid`) instead of raising, so call sites
  branch explicitly; `require` unwraps at the API boundary.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from wiwebb_data.api.errors import ApiError, normalize_validation_error

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Invalid:
    error: ApiError


ValidationResult = Valid[T] | Invalid


def _wrong_container(expected: str, data: Any) -> Invalid:
    return Invalid(
        ApiError(
            f"Validation error: expected {expected}",
            status=400,
            code="VALIDATION_ERROR",
            details={"received": type(data).__name__},
            is_validation_error=True,
            structured=True,
        )
    )


def validate(schema: type[M], data: Any) -> Valid[M] | Invalid:
    if isinstance(data, schema):
        # Already a parsed instance (e.g. a typed request built by the caller); re-check anyway.
        data = data.model_dump(exclude_unset=True)
    try:
        return Valid(schema.model_validate(data))
    except ValidationError as e:
        return Invalid(normalize_validation_error(e))


def validate_list(schema: type[M], data: Any) -> Valid[list[M]] | Invalid:
    """
    Validate each element independently. The first bad element fails the whole call:
    a partially-validated list is never returned as if it were complete.
    """

    if not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        return _wrong_container("a list", data)

    items: list[M] = []
    for index, element in enumerate(data):
        try:
            items.append(schema.model_validate(element))
        except ValidationError as e:
            return Invalid(normalize_validation_error(e, path_prefix=(index,)))
    return Valid(items)


def validate_partial(schema: type[M], data: Any) -> Valid[dict[str, Any]] | Invalid:
    """
    Partial updates: only the fields present are checked and returned. Absent fields
    are never filled with defaults.
    """

    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    if not isinstance(data, Mapping):
        return _wrong_container("an object", data)

    result = validate(schema, data)
    if isinstance(result, Invalid):
        return result
    return Valid(result.value.model_dump(mode="json", exclude_unset=True))


def require(result: Valid[T] | Invalid) -> T:
    if isinstance(result, Invalid):
        raise result.error
    return result.value


def dump_payload(model: BaseModel) -> dict[str, Any]:
    # Wire form: JSON-compatible, without fields the caller never set to a value.
    return model.model_dump(mode="json", exclude_none=True)


# --- Module Notes -----------------------------------------------------------
# Both backends go through this gate, so a bad payload fails identically whether the
# simulated store or the remote service is active, and before any network call.
