"""
wiwebb_data.transport.http

Resilient, auth-aware HTTP transport.

Responsibilities:
- Own the single shared `httpx.AsyncClient`.
- Outbound: await the current credential and attach it as the Authorization header.
- Inbound: normalize every failure into `ApiError` before it leaves the transport.
- Retry network failures and server errors with exponential backoff.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from wiwebb_data.api.errors import ApiError, normalize_response, normalize_transport_error
from wiwebb_data.auth.models import Credential
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.settings import Settings
from wiwebb_data.transport.retry import RetryPolicy

log = get_logger(__name__)

CredentialProvider = Callable[[], Awaitable[Credential | None]]
Sleep = Callable[[float], Awaitable[None]]

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    method: str
    path: str
    payload: Any = None
    params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    # False for public endpoints (login, registration, password reset).
    auth: bool = True


class ResilientTransport:
    def __init__(
        self,
        *,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
        credentials: CredentialProvider | None = None,
        retry: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(settings.request_timeout_s),
            headers=_DEFAULT_HEADERS,
        )
        self._credentials = credentials
        self._retry = retry or RetryPolicy.from_settings(settings)
        self._sleep = sleep

    def bind_credentials(self, credentials: CredentialProvider) -> None:
        # The coordinator is built after the transport; it binds its accessor here once.
        self._credentials = credentials

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # --- verbs -------------------------------------------------------------------

    async def get(self, path: str, *, params: Mapping[str, Any] | None = None, **kw: Any) -> Any:
        return await self.send(RequestDescriptor("GET", path, params=params, **kw))

    async def post(self, path: str, payload: Any = None, **kw: Any) -> Any:
        return await self.send(RequestDescriptor("POST", path, payload=payload, **kw))

    async def put(self, path: str, payload: Any = None, **kw: Any) -> Any:
        return await self.send(RequestDescriptor("PUT", path, payload=payload, **kw))

    async def patch(self, path: str, payload: Any = None, **kw: Any) -> Any:
        return await self.send(RequestDescriptor("PATCH", path, payload=payload, **kw))

    async def delete(self, path: str, **kw: Any) -> Any:
        return await self.send(RequestDescriptor("DELETE", path, **kw))

    # --- core ----------------------------------------------------------------------

    async def send(self, request: RequestDescriptor) -> Any:
        """
        Execute with retries. Returns the decoded JSON body (None for empty bodies).
        Raises `ApiError` only.
        """

        retry_number = 0
        while True:
            try:
                return await self._attempt(request)
            except ApiError as e:
                retry_number += 1
                if not self._retry.should_retry(e, retry_number=retry_number):
                    log.debug(
                        "http.failed",
                        method=request.method,
                        path=request.path,
                        status=e.status,
                        kind=str(e.kind),
                        attempts=retry_number,
                    )
                    raise
                delay = self._retry.delay(retry_number - 1)
                log.info(
                    "http.retry",
                    method=request.method,
                    path=request.path,
                    retry=retry_number,
                    max_retries=self._retry.max_retries,
                    delay_s=round(delay, 3),
                    kind=str(e.kind),
                )
                await self._sleep(delay)

    async def _attempt(self, request: RequestDescriptor) -> Any:
        headers = dict(request.headers)
        if request.auth and "Authorization" not in headers:
            authz = await self._authorization()
            if authz:
                headers["Authorization"] = authz

        try:
            response = await self._http.request(
                request.method,
                request.path,
                json=request.payload if request.payload is not None else None,
                params=dict(request.params) if request.params else None,
                headers=headers,
            )
        except httpx.HTTPError as e:
            # Timeouts land here too and are classified as network failures.
            raise normalize_transport_error(e) from e

        if response.is_error:
            raise normalize_response(response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                "Response body is not valid JSON",
                status=response.status_code,
                code="INVALID_RESPONSE",
                cause=e,
            ) from e

    async def _authorization(self) -> str | None:
        if self._credentials is None:
            return None
        try:
            credential = await self._credentials()
        except Exception as e:  # noqa: BLE001
            # Public endpoints must keep working when no credential can be obtained.
            log.warning("http.credential_unavailable", error=type(e).__name__)
            return None
        return credential.header_value if credential else None


# --- Module Notes -----------------------------------------------------------
# Two authorization forms coexist: `Bearer <jwt>` from the identity provider and
# `Token <key>` from DRF login. The credential carries its own scheme.
