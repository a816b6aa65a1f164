"""Local credential profiles for OVHcloud API applications."""

from __future__ import annotations

import json
import os
import re
from datetime import datetime, timezone
from pathlib import Path

from ovhcloud.config import resolve_endpoint
from ovhcloud.errors import OvhConfigError
from ovhcloud.types import ApplicationCredentials, InitProfileResult, JsonDict, OvhProfile

PROFILE_RECORD_VERSION = 1
PROFILES_DIR = "profiles"
PROFILE_FILE = "credentials.json"
DEFAULT_OVH_HOME = str(Path.home() / ".ovhcloud")

_PROFILE_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,62}$")


def _iso_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _normalize_profile_name(raw: str) -> str:
    name = raw.strip().lower()
    if not name:
        raise OvhConfigError("Profile name is required")
    if not _PROFILE_NAME_PATTERN.match(name):
        raise OvhConfigError(
            "Profile name must match ^[a-z0-9][a-z0-9_-]{0,62}$ (1-63 chars, lowercase)",
        )
    return name


def _get_home_dir(explicit_home_dir: str | None = None) -> str:
    return explicit_home_dir or os.environ.get("OVH_HOME") or DEFAULT_OVH_HOME


def _profile_path(home_dir: str, name: str) -> Path:
    return Path(home_dir) / PROFILES_DIR / name / PROFILE_FILE


def _write_record(path: Path, record: JsonDict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    os.chmod(path.parent, 0o700)
    path.write_text(json.dumps(record, indent=2) + "\n", encoding="utf-8")
    os.chmod(path, 0o600)


def _read_record(path: Path) -> JsonDict:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception as error:
        raise OvhConfigError(f"Failed to parse profile file {path}: {error}")

    if not isinstance(raw, dict):
        raise OvhConfigError(f"Profile file {path} is invalid")
    if int(raw.get("version", 0)) != PROFILE_RECORD_VERSION:
        raise OvhConfigError("Unsupported profile record version")
    return JsonDict(raw)


def list_profiles(home_dir: str | None = None) -> list[str]:
    root = Path(_get_home_dir(home_dir)) / PROFILES_DIR
    if not root.exists():
        return []
    names: list[str] = []
    for child in sorted(root.iterdir()):
        if child.is_dir() and (child / PROFILE_FILE).exists():
            names.append(child.name)
    return names


def _resolve_profile_name(name: str | None, home_dir: str | None) -> str:
    if name:
        return _normalize_profile_name(name)

    env_name = os.environ.get("OVH_PROFILE")
    if env_name:
        return _normalize_profile_name(env_name)

    names = list_profiles(home_dir)
    if len(names) == 1:
        return names[0]
    if len(names) == 0:
        raise OvhConfigError("No OVHcloud profile found. Run `ovhcloud init <profile>` first.")
    raise OvhConfigError(
        f"Multiple profiles found ({', '.join(names)}). Pass the profile explicitly or set OVH_PROFILE.",
    )


def load_profile(name: str | None = None, home_dir: str | None = None) -> OvhProfile:
    home = _get_home_dir(home_dir)
    profile = _resolve_profile_name(name, home)
    path = _profile_path(home, profile)

    if not path.exists():
        raise OvhConfigError(
            f"OVHcloud profile '{profile}' not found at {path}. Run `ovhcloud init {profile}` first.",
        )

    raw = _read_record(path)
    application_key = str(raw.get("applicationKey") or "")
    application_secret = str(raw.get("applicationSecret") or "")
    if not application_key or not application_secret:
        raise OvhConfigError(f"Profile '{profile}' is missing its application key or secret")

    return OvhProfile(
        name=profile,
        credentials=ApplicationCredentials(
            application_key=application_key,
            application_secret=application_secret,
        ),
        consumer_key=raw.get("consumerKey") or None,
        endpoint=resolve_endpoint(str(raw.get("endpoint") or "") or None),
        home_dir=home,
        profile_path=str(path),
    )


def init_profile(
    name: str,
    application_key: str,
    application_secret: str,
    consumer_key: str | None = None,
    endpoint: str | None = None,
    home_dir: str | None = None,
    force: bool = False,
) -> InitProfileResult:
    profile = _normalize_profile_name(name)
    home = _get_home_dir(home_dir)
    path = _profile_path(home, profile)

    if path.exists() and not force:
        existing = load_profile(name=profile, home_dir=home)
        return InitProfileResult(
            name=existing.name,
            application_key=existing.credentials.application_key,
            endpoint=existing.endpoint,
            has_consumer_key=existing.consumer_key is not None,
            created=False,
            home_dir=home,
            profile_path=str(path),
        )

    if not application_key or not application_secret:
        raise OvhConfigError("Application key and secret are required")

    resolved_endpoint = resolve_endpoint(endpoint)
    now = _iso_now()
    record = JsonDict({
        "version": PROFILE_RECORD_VERSION,
        "name": profile,
        "applicationKey": application_key,
        "applicationSecret": application_secret,
        "consumerKey": consumer_key or None,
        "endpoint": resolved_endpoint,
        "createdAt": now,
        "updatedAt": now,
    })
    _write_record(path, record)

    return InitProfileResult(
        name=profile,
        application_key=application_key,
        endpoint=resolved_endpoint,
        has_consumer_key=bool(consumer_key),
        created=True,
        home_dir=home,
        profile_path=str(path),
    )


def _update_consumer_key(name: str | None, home_dir: str | None, consumer_key: str | None) -> OvhProfile:
    home = _get_home_dir(home_dir)
    profile = load_profile(name=name, home_dir=home)
    path = Path(profile.profile_path)

    record = _read_record(path)
    record["consumerKey"] = consumer_key
    record["updatedAt"] = _iso_now()
    _write_record(path, record)

    return load_profile(name=profile.name, home_dir=home)


def save_consumer_key(consumer_key: str, name: str | None = None, home_dir: str | None = None) -> OvhProfile:
    if not consumer_key:
        raise OvhConfigError("Consumer key is required")
    return _update_consumer_key(name, home_dir, consumer_key)


def clear_consumer_key(name: str | None = None, home_dir: str | None = None) -> OvhProfile:
    return _update_consumer_key(name, home_dir, None)


def credentials_from_env() -> tuple[ApplicationCredentials, str | None, str]:
    """Read ``OVH_APPLICATION_KEY``/``OVH_APPLICATION_SECRET``/``OVH_CONSUMER_KEY``."""
    application_key = os.environ.get("OVH_APPLICATION_KEY", "")
    application_secret = os.environ.get("OVH_APPLICATION_SECRET", "")
    if not application_key or not application_secret:
        raise OvhConfigError("OVH_APPLICATION_KEY and OVH_APPLICATION_SECRET must both be set")

    credentials = ApplicationCredentials(
        application_key=application_key,
        application_secret=application_secret,
    )
    return credentials, os.environ.get("OVH_CONSUMER_KEY") or None, resolve_endpoint()
