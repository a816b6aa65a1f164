"""Top-level init() helper matching the CLI's one-command profile bootstrap."""

from __future__ import annotations

from ovhcloud.credentials_store import init_profile


def init(
    *,
    profile: str,
    application_key: str,
    application_secret: str,
    consumer_key: str | None = None,
    endpoint: str | None = None,
    home_dir: str | None = None,
    force: bool = False,
):
    return init_profile(
        name=profile,
        application_key=application_key,
        application_secret=application_secret,
        consumer_key=consumer_key,
        endpoint=endpoint,
        home_dir=home_dir,
        force=force,
    )
