"""OVHcloud Python SDK: signed API requests, local profiles and endpoint helpers."""

from ovhcloud.client import OvhClient
from ovhcloud.config import DEFAULT_ENDPOINT, ENDPOINTS, resolve_endpoint
from ovhcloud.credentials_store import (
    DEFAULT_OVH_HOME,
    clear_consumer_key,
    credentials_from_env,
    init_profile,
    list_profiles,
    load_profile,
    save_consumer_key,
)
from ovhcloud.dispatcher import SignedDispatcher
from ovhcloud.errors import OvhApiError, OvhConfigError, OvhError
from ovhcloud.init import init
from ovhcloud.signatures import (
    SIGNATURE_V1,
    build_headers,
    serialize_body,
    sign,
    sign_request,
    signature_material,
    verify_signature,
)
from ovhcloud.types import (
    UNAUTHENTICATED,
    ApiResponse,
    ApplicationCredentials,
    AuthState,
    InitProfileResult,
    OvhProfile,
    SignedRequest,
    VerifySignatureResult,
)

__all__ = [
    "DEFAULT_ENDPOINT",
    "DEFAULT_OVH_HOME",
    "ENDPOINTS",
    "SIGNATURE_V1",
    "UNAUTHENTICATED",
    "ApiResponse",
    "ApplicationCredentials",
    "AuthState",
    "InitProfileResult",
    "OvhApiError",
    "OvhClient",
    "OvhConfigError",
    "OvhError",
    "OvhProfile",
    "SignedDispatcher",
    "SignedRequest",
    "VerifySignatureResult",
    "build_headers",
    "clear_consumer_key",
    "credentials_from_env",
    "init",
    "init_profile",
    "list_profiles",
    "load_profile",
    "resolve_endpoint",
    "save_consumer_key",
    "serialize_body",
    "sign",
    "sign_request",
    "signature_material",
    "verify_signature",
]

__version__ = "0.1.0"
