"""OVHcloud request signatures and header assembly."""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Callable

from ovhcloud.types import (
    ApplicationCredentials,
    AuthState,
    JsonValue,
    SignedRequest,
    VerifySignatureResult,
)

SIGNATURE_V1 = "$1$"
SIGNATURE_DELIMITER = "+"

HEADER_APPLICATION = "X-Ovh-Application"
HEADER_TIMESTAMP = "X-Ovh-Timestamp"
HEADER_CONSUMER = "X-Ovh-Consumer"
HEADER_SIGNATURE = "X-Ovh-Signature"


def _sha1_hex(material: str) -> str:
    return hashlib.sha1(material.encode("utf-8")).hexdigest()


# Each scheme is keyed by the prefix the remote verifier reads off the header.
SIGNATURE_SCHEMES: dict[str, Callable[[str], str]] = {
    SIGNATURE_V1: _sha1_hex,
}

DEFAULT_SIGNATURE_SCHEME = SIGNATURE_V1


def signature_material(
    secret: str,
    consumer_key: str,
    method: str,
    url: str,
    body: str,
    timestamp: int,
) -> str:
    # No escaping: secrets, tokens and urls must not contain the delimiter.
    return SIGNATURE_DELIMITER.join(
        [secret, consumer_key, method, url, body, str(timestamp)],
    )


def sign(
    secret: str,
    consumer_key: str,
    method: str,
    url: str,
    body: str,
    timestamp: int,
    scheme: str = DEFAULT_SIGNATURE_SCHEME,
) -> str:
    """Return the ``X-Ovh-Signature`` value for one call.

    ``body`` must be the exact string put on the wire, ``""`` when the call has
    no body.
    """
    digest = SIGNATURE_SCHEMES.get(scheme)
    if digest is None:
        raise ValueError(f"Unsupported signature scheme: {scheme}")
    material = signature_material(secret, consumer_key, method, url, body, timestamp)
    return scheme + digest(material)


def serialize_body(body: JsonValue) -> str:
    if body is None:
        return ""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def build_headers(
    credentials: ApplicationCredentials,
    auth: AuthState,
    method: str,
    url: str,
    body: str,
    timestamp: int,
) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        HEADER_APPLICATION: credentials.application_key,
        HEADER_TIMESTAMP: str(timestamp),
    }

    if auth.authenticated:
        consumer_key = str(auth.consumer_key)
        headers[HEADER_CONSUMER] = consumer_key
        headers[HEADER_SIGNATURE] = sign(
            credentials.application_secret,
            consumer_key,
            method,
            url,
            body,
            timestamp,
        )

    return headers


def sign_request(
    credentials: ApplicationCredentials,
    auth: AuthState,
    *,
    url: str,
    method: str,
    body: JsonValue = None,
    timestamp: int,
) -> SignedRequest:
    normalized_method = method.upper()
    serialized = serialize_body(body)
    headers = build_headers(
        credentials,
        auth,
        method=normalized_method,
        url=url,
        body=serialized,
        timestamp=timestamp,
    )
    return SignedRequest(
        url=url,
        method=normalized_method,
        headers=headers,
        body=serialized,
        timestamp=timestamp,
    )


def _header(headers: dict[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return str(value)
    return None


def verify_signature(
    *,
    application_secret: str,
    method: str,
    url: str,
    headers: dict[str, str],
    body: str | bytes | None = None,
    now_ts: int | None = None,
    max_age_seconds: int | None = None,
) -> VerifySignatureResult:
    consumer_key = _header(headers, HEADER_CONSUMER)
    signature = _header(headers, HEADER_SIGNATURE)
    timestamp_raw = _header(headers, HEADER_TIMESTAMP)

    if not consumer_key or not signature:
        return VerifySignatureResult(valid=False, reason="Missing X-Ovh-Consumer or X-Ovh-Signature header")
    if not timestamp_raw or not (timestamp_raw.isascii() and timestamp_raw.isdigit()):
        return VerifySignatureResult(valid=False, reason="Missing or invalid X-Ovh-Timestamp header")

    scheme = next((prefix for prefix in SIGNATURE_SCHEMES if signature.startswith(prefix)), None)
    if scheme is None:
        return VerifySignatureResult(valid=False, reason="Unsupported signature scheme")

    timestamp = int(timestamp_raw)
    if max_age_seconds is not None:
        now_value = now_ts if now_ts is not None else int(datetime.now(timezone.utc).timestamp())
        if abs(now_value - timestamp) > max_age_seconds:
            return VerifySignatureResult(valid=False, scheme=scheme, reason="Timestamp outside accepted window")

    if isinstance(body, bytes):
        body = body.decode("utf-8")
    expected = sign(
        application_secret,
        consumer_key,
        method.upper(),
        url,
        body or "",
        timestamp,
        scheme=scheme,
    )
    if not hmac.compare_digest(expected, signature):
        return VerifySignatureResult(valid=False, scheme=scheme, reason="Signature mismatch")
    return VerifySignatureResult(valid=True, scheme=scheme)
