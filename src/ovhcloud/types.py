"""Shared SDK datatypes for the OVHcloud Python client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union

from ovhcloud.errors import OvhApiError

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


@dataclass(frozen=True)
class ApplicationCredentials:
    application_key: str
    application_secret: str

    def __repr__(self) -> str:
        return f"ApplicationCredentials(application_key={self.application_key!r}, application_secret='***')"


@dataclass(frozen=True)
class AuthState:
    """Authentication mode of a client.

    A state without a consumer key is *unauthenticated*: requests only carry
    the application key. Replacing the state is the only way to move between
    modes, so an in-flight request keeps the state it read when its headers
    were built.
    """

    consumer_key: str | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.consumer_key)

    def __repr__(self) -> str:
        mode = "authenticated" if self.authenticated else "unauthenticated"
        return f"AuthState({mode})"


UNAUTHENTICATED = AuthState()


@dataclass(frozen=True)
class SignedRequest:
    url: str
    method: str
    headers: dict[str, str]
    body: str
    timestamp: int


@dataclass(frozen=True)
class ApiResponse:
    """Normalized result of a dispatched call.

    ``ok`` mirrors a 2xx status. ``data`` is the parsed JSON body, ``None``
    when the service answered with an empty body.
    """

    ok: bool
    data: JsonValue
    status_code: int

    def __iter__(self):
        return iter((self.ok, self.data))

    def raise_for_status(self) -> "ApiResponse":
        if self.ok:
            return self
        error_class = None
        message = f"HTTP {self.status_code}"
        if isinstance(self.data, dict):
            error_class = self.data.get("class")
            message = str(self.data.get("message") or message)
        raise OvhApiError(
            status_code=self.status_code,
            message=message,
            error_class=error_class,
            data=self.data,
        )


@dataclass(frozen=True)
class VerifySignatureResult:
    valid: bool
    scheme: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class OvhProfile:
    name: str
    credentials: ApplicationCredentials
    consumer_key: str | None
    endpoint: str
    home_dir: str
    profile_path: str


@dataclass(frozen=True)
class InitProfileResult:
    name: str
    application_key: str
    endpoint: str
    has_consumer_key: bool
    created: bool
    home_dir: str
    profile_path: str


class JsonDict(dict[str, Any]):
    """Typed alias for JSON dictionaries used in internal serialization."""
