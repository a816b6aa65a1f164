"""Signed request dispatch for the OVHcloud API."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

import httpx

from ovhcloud.config import DEFAULT_TIMEOUT, resolve_endpoint
from ovhcloud.signatures import HEADER_SIGNATURE, sign_request
from ovhcloud.types import (
    UNAUTHENTICATED,
    ApiResponse,
    ApplicationCredentials,
    AuthState,
    JsonValue,
    SignedRequest,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def unix_now() -> int:
    return int(datetime.now(timezone.utc).timestamp())


def _parse_body(response: httpx.Response) -> JsonValue:
    if not response.content:
        return None
    return json.loads(response.content)


class SignedDispatcher:
    """Turn a method/path/body triple into an authenticated API call.

    The dispatcher owns the application credentials for its whole lifetime and
    an :class:`AuthState` that callers replace through :attr:`consumer`,
    :meth:`authenticate` and :meth:`clear_consumer`. Requests are sent over a
    single :class:`httpx.AsyncClient`, so many calls may be in flight at once.

    When ``http_client`` is supplied it is used as is: ``timeout`` is ignored
    and the caller stays responsible for closing it.
    """

    def __init__(
        self,
        application_key: str,
        application_secret: str,
        consumer_key: str | None = None,
        *,
        endpoint: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
        now: Clock | None = None,
    ):
        self._credentials = ApplicationCredentials(
            application_key=application_key,
            application_secret=application_secret,
        )
        self._auth = AuthState(consumer_key=consumer_key) if consumer_key else UNAUTHENTICATED
        self._endpoint = resolve_endpoint(endpoint)
        self._now = now or unix_now
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def application_key(self) -> str:
        return self._credentials.application_key

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def auth(self) -> AuthState:
        return self._auth

    @property
    def authenticated(self) -> bool:
        return self._auth.authenticated

    @property
    def consumer(self) -> str | None:
        """The consumer token of the authorized session, if any."""
        return self._auth.consumer_key

    @consumer.setter
    def consumer(self, token: str | None) -> None:
        if token:
            self.authenticate(token)
        else:
            self.clear_consumer()

    def authenticate(self, consumer_key: str) -> AuthState:
        if not consumer_key:
            raise ValueError("authenticate(consumer_key): consumer_key is required")
        self._auth = AuthState(consumer_key=consumer_key)
        logger.debug("Client switched to authenticated mode")
        return self._auth

    def clear_consumer(self) -> AuthState:
        self._auth = UNAUTHENTICATED
        logger.debug("Client switched to unauthenticated mode")
        return self._auth

    def build_request(self, path: str, method: str, body: JsonValue = None) -> SignedRequest:
        # One read of the auth state and the clock per call.
        auth = self._auth
        return sign_request(
            self._credentials,
            auth,
            url=self._endpoint + path,
            method=method,
            body=body,
            timestamp=self._now(),
        )

    async def request(self, path: str, method: str, body: JsonValue = None) -> ApiResponse:
        signed = self.build_request(path, method, body)
        logger.debug(
            "%s %s (%s)",
            signed.method,
            signed.url,
            "signed" if HEADER_SIGNATURE in signed.headers else "application-only",
        )

        response = await self._client.request(
            signed.method,
            signed.url,
            headers=signed.headers,
            content=signed.body.encode("utf-8") if signed.body else None,
        )
        logger.debug("%s %s -> %s", signed.method, signed.url, response.status_code)

        return ApiResponse(
            ok=response.is_success,
            data=_parse_body(response),
            status_code=response.status_code,
        )

    async def get(self, path: str, body: JsonValue = None) -> ApiResponse:
        return await self.request(path, "GET", body)

    async def post(self, path: str, body: JsonValue = None) -> ApiResponse:
        return await self.request(path, "POST", body)

    async def put(self, path: str, body: JsonValue = None) -> ApiResponse:
        return await self.request(path, "PUT", body)

    async def delete(self, path: str, body: JsonValue = None) -> ApiResponse:
        return await self.request(path, "DELETE", body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SignedDispatcher":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
