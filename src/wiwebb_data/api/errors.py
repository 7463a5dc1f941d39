"""
wiwebb_data.api.errors

Error taxonomy and normalizers.

Responsibilities:
- Define `ApiError`, the single error shape surfaced at every API boundary.
- Convert validation, identity-provider and transport failures into `ApiError`.
- Classify errors and map each classification to one user-facing message.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

VALIDATION_ERROR_CODE = "VALIDATION_ERROR"
NOT_FOUND_DETAIL = "Not found."


class ErrorKind(enum.StrEnum):
    network = "network"
    validation = "validation"
    unauthorized = "unauthorized"
    forbidden = "forbidden"
    not_found = "not_found"
    server = "server"
    unclassified = "unclassified"


class ApiError(Exception):
    """
    Normalized failure.

    `structured` is True when `message` came from a structured backend payload
    (safe to show); transport-internal messages leave it False.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
        cause: BaseException | Any = None,
        is_network_error: bool = False,
        is_validation_error: bool = False,
        structured: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details
        self.cause = cause
        self.is_network_error = is_network_error
        self.is_validation_error = is_validation_error
        self.structured = structured
        self.kind = _classify_fields(status, is_network_error, is_validation_error)

    def to_dict(self) -> dict[str, Any]:
        # Structural view; `cause` is the raw failure and is deliberately left out.
        return {
            "message": self.message,
            "kind": str(self.kind),
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "is_network_error": self.is_network_error,
            "is_validation_error": self.is_validation_error,
            "structured": self.structured,
        }

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind!s}, status={self.status!r}, message={self.message!r})"


def _classify_fields(status: int | None, network: bool, validation: bool) -> ErrorKind:
    if network:
        return ErrorKind.network
    if validation:
        return ErrorKind.validation
    if status == 401:
        return ErrorKind.unauthorized
    if status == 403:
        return ErrorKind.forbidden
    if status == 404:
        return ErrorKind.not_found
    if status is not None and status >= 500:
        return ErrorKind.server
    return ErrorKind.unclassified


# --- Normalizers --------------------------------------------------------------


def normalize_validation_error(
    exc: ValidationError, *, path_prefix: tuple[int | str, ...] = ()
) -> ApiError:
    # Only the first issue goes into the message; the full list stays in `details`.
    issues = exc.errors(include_url=False, include_context=False, include_input=False)
    if issues:
        first = issues[0]
        path = ".".join(str(p) for p in (*path_prefix, *first["loc"]))
        message = (
            f"Validation error: {path} - {first['msg']}"
            if path
            else f"Validation error: {first['msg']}"
        )
    else:
        message = "Validation failed"

    return ApiError(
        message,
        status=400,
        code=VALIDATION_ERROR_CODE,
        details=issues,
        cause=exc,
        is_validation_error=True,
        structured=True,
    )


def normalize_identity_error(error: Any) -> ApiError:
    """
    Identity-provider failures come either as exceptions carrying attributes or as
    error mappings (`message`, `code`/`error_code`, `status`, `details`/`hint`).
    """

    if isinstance(error, ApiError):
        return error

    def pick(*names: str) -> Any:
        for name in names:
            if isinstance(error, Mapping) and error.get(name) is not None:
                return error[name]
            value = getattr(error, name, None)
            if value is not None and not callable(value):
                return value
        return None

    message = pick("message", "error_description", "msg")
    if message is None and isinstance(error, BaseException):
        message = str(error) or None

    return ApiError(
        str(message) if message else "Authentication operation failed",
        status=pick("status", "status_code"),
        code=pick("code", "error_code"),
        details=pick("details", "hint"),
        cause=error,
        structured=message is not None,
    )


def normalize_response(response: httpx.Response, *, cause: Any = None) -> ApiError:
    """Normalize a non-2xx response; backend-provided messages win over transport text."""

    data: Any
    try:
        data = response.json()
    except ValueError:
        data = None

    backend_message = None
    backend_code = None
    if isinstance(data, Mapping):
        for field in ("message", "error", "detail"):
            value = data.get(field)
            if isinstance(value, str) and value:
                backend_message = value
                break
        code = data.get("code")
        backend_code = str(code) if code is not None else None

    if backend_message is None:
        message = str(cause) if cause is not None else _status_message(response)
    else:
        message = backend_message

    return ApiError(
        message,
        status=response.status_code,
        code=backend_code,
        details=data,
        cause=cause,
        structured=backend_message is not None,
    )


def normalize_transport_error(error: Any) -> ApiError:
    if isinstance(error, ApiError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        return normalize_response(error.response, cause=error)

    # No response received: connection refused, DNS failure, timeouts.
    if isinstance(error, httpx.RequestError):
        return ApiError(
            str(error) or "Network error occurred",
            code=type(error).__name__,
            cause=error,
            is_network_error=True,
        )

    return ApiError(
        str(error) or "Unknown error occurred",
        cause=error,
    )


def normalize_error(error: Any) -> ApiError:
    """Dispatch any raised value to the matching normalizer."""

    if isinstance(error, ApiError):
        return error
    if isinstance(error, ValidationError):
        return normalize_validation_error(error)
    if isinstance(error, (httpx.HTTPStatusError, httpx.RequestError)):
        return normalize_transport_error(error)
    return ApiError(str(error) or "Unknown error occurred", cause=error)


def not_found_error(detail: str = NOT_FOUND_DETAIL) -> ApiError:
    # Mirrors what a live 404 from the backend normalizes to.
    return ApiError(detail, status=404, details={"detail": detail}, structured=True)


def _status_message(response: httpx.Response) -> str:
    reason = response.reason_phrase or "Request failed"
    return f"Request failed with status {response.status_code} ({reason})"


# --- Guards & predicates --------------------------------------------------------


def is_api_error(error: object) -> bool:
    return isinstance(error, ApiError)


def is_unauthorized(error: object) -> bool:
    return isinstance(error, ApiError) and error.status == 401


def is_forbidden(error: object) -> bool:
    return isinstance(error, ApiError) and error.status == 403


def is_not_found(error: object) -> bool:
    return isinstance(error, ApiError) and error.status == 404


def is_server_error(error: object) -> bool:
    return isinstance(error, ApiError) and error.status is not None and error.status >= 500


def is_client_error(error: object) -> bool:
    return isinstance(error, ApiError) and error.status is not None and 400 <= error.status < 500


def is_network_error(error: object) -> bool:
    return isinstance(error, ApiError) and error.is_network_error


def is_validation_error(error: object) -> bool:
    return isinstance(error, ApiError) and error.is_validation_error


def classify(error: object) -> ErrorKind:
    if not isinstance(error, ApiError):
        return ErrorKind.unclassified
    return error.kind


_FRIENDLY_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.network: "Network connection failed. Please check your internet connection.",
    ErrorKind.unauthorized: "Your session has expired. Please sign in again.",
    ErrorKind.forbidden: "You do not have permission to perform this action.",
    ErrorKind.not_found: "The requested resource was not found.",
    ErrorKind.server: "Server error occurred. Please try again later.",
}
_FALLBACK_MESSAGE = "An unexpected error occurred"


def user_friendly_message(error: object) -> str:
    kind = classify(error)
    if kind in _FRIENDLY_MESSAGES:
        return _FRIENDLY_MESSAGES[kind]
    if isinstance(error, ApiError) and error.structured:
        # Validation messages and explicit backend messages are short and safe to show.
        return error.message
    if kind is ErrorKind.validation:
        return "Some of the provided data is invalid."
    return _FALLBACK_MESSAGE


# --- Module Notes -----------------------------------------------------------
# Higher-level consumers may sign the user out on `unauthorized`; this module only
# normalizes and reports.
