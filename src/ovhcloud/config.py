"""API endpoint resolution."""

from __future__ import annotations

import os

from ovhcloud.errors import OvhConfigError

DEFAULT_ENDPOINT_NAME = "ovh-us"
DEFAULT_TIMEOUT = 30.0

ENDPOINTS = {
    "ovh-us": "https://api.us.ovhcloud.com/1.0",
    "ovh-eu": "https://eu.api.ovh.com/1.0",
    "ovh-ca": "https://ca.api.ovh.com/1.0",
    "kimsufi-eu": "https://eu.api.kimsufi.com/1.0",
    "kimsufi-ca": "https://ca.api.kimsufi.com/1.0",
    "soyoustart-eu": "https://eu.api.soyoustart.com/1.0",
    "soyoustart-ca": "https://ca.api.soyoustart.com/1.0",
}

DEFAULT_ENDPOINT = ENDPOINTS[DEFAULT_ENDPOINT_NAME]


def resolve_endpoint(explicit: str | None = None) -> str:
    """Return the API origin for a named endpoint or an explicit URL.

    Falls back to ``OVH_ENDPOINT`` and then to the US endpoint. Trailing
    slashes are dropped because paths are appended verbatim.
    """
    value = (explicit or os.environ.get("OVH_ENDPOINT") or DEFAULT_ENDPOINT_NAME).strip()
    if value in ENDPOINTS:
        return ENDPOINTS[value]
    if value.startswith("http://") or value.startswith("https://"):
        return value.rstrip("/")
    raise OvhConfigError(
        f"Unknown endpoint '{value}'. Use one of {', '.join(sorted(ENDPOINTS))} or an http(s) URL.",
    )
