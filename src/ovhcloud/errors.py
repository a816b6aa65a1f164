"""Exceptions raised by the OVHcloud Python client."""

from __future__ import annotations

from typing import Any


class OvhError(Exception):
    """Base exception for OVHcloud client errors."""


class OvhConfigError(OvhError, ValueError):
    """Raised when profiles, credentials or endpoints cannot be resolved."""


class OvhApiError(OvhError):
    """Raised by :meth:`ApiResponse.raise_for_status` for non-2xx answers."""

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        error_class: str | None = None,
        data: Any = None,
    ):
        super().__init__(f"{status_code} {error_class or 'error'}: {message}")
        self.status_code = status_code
        self.message = message
        self.error_class = error_class
        self.data = data
