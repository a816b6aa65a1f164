"""OVHcloud Python CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from ovhcloud.client import OvhClient
from ovhcloud.credentials_store import init_profile, list_profiles, load_profile, save_consumer_key
from ovhcloud.errors import OvhConfigError

METHODS = ("GET", "POST", "PUT", "DELETE")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ovhcloud", description="OVHcloud API CLI")
    parser.add_argument("--verbose", action="store_true", help="Log requests at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Store application credentials in a local profile")
    init_parser.add_argument("profile")
    init_parser.add_argument("--application-key", required=True)
    init_parser.add_argument("--application-secret", required=True)
    init_parser.add_argument("--consumer-key", default=None)
    init_parser.add_argument("--endpoint", default=None)
    init_parser.add_argument("--force", action="store_true")
    init_parser.add_argument("--home", default=None)
    init_parser.add_argument("--json", action="store_true")

    list_parser = subparsers.add_parser("list", help="List local profiles")
    list_parser.add_argument("--home", default=None)
    list_parser.add_argument("--json", action="store_true")

    login_parser = subparsers.add_parser("login", help="Request a consumer key and store it in the profile")
    login_parser.add_argument("--profile", default=None)
    login_parser.add_argument("--home", default=None)
    login_parser.add_argument(
        "--rule",
        action="append",
        required=True,
        help="Access rule as METHOD:PATH, e.g. GET:/me (repeatable)",
    )
    login_parser.add_argument("--redirection", default=None)
    login_parser.add_argument("--json", action="store_true")

    call_parser = subparsers.add_parser("call", help="Perform a signed API call")
    call_parser.add_argument("method", type=str.upper, choices=METHODS)
    call_parser.add_argument("path")
    call_parser.add_argument("--data", default=None, help="JSON request body")
    call_parser.add_argument("--profile", default=None)
    call_parser.add_argument("--home", default=None)

    return parser


def _parse_rule(raw: str) -> dict[str, str]:
    method, sep, path = raw.partition(":")
    method = method.strip().upper()
    if not sep or method not in METHODS or not path.startswith("/"):
        raise OvhConfigError(f"Invalid access rule '{raw}'. Expected METHOD:PATH, e.g. GET:/me")
    return {"method": method, "path": path}


def _open_client(profile: str | None, home_dir: str | None) -> OvhClient:
    return OvhClient.from_profile(profile, home_dir=home_dir)


async def _login(args: argparse.Namespace, rules: list[dict[str, str]]) -> tuple[bool, Any]:
    async with _open_client(args.profile, args.home) as client:
        # Credential requests are application-only.
        client.clear_consumer()
        return tuple(await client.login(rules, args.redirection))


async def _call(args: argparse.Namespace, body: Any) -> tuple[bool, int, Any]:
    async with _open_client(args.profile, args.home) as client:
        response = await client.request(args.path, args.method, body)
        return response.ok, response.status_code, response.data


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.command == "list":
        profiles = list_profiles(args.home)
        if args.json:
            print(
                json.dumps(
                    {
                        "command": "list",
                        "home": args.home,
                        "count": len(profiles),
                        "profiles": profiles,
                    },
                    sort_keys=True,
                )
            )
            return 0
        if not profiles:
            print("No profiles found.")
            return 0
        for profile in profiles:
            print(profile)
        return 0

    if args.command == "init":
        result = init_profile(
            name=args.profile,
            application_key=args.application_key,
            application_secret=args.application_secret,
            consumer_key=args.consumer_key,
            endpoint=args.endpoint,
            home_dir=args.home,
            force=args.force,
        )
        if args.json:
            print(
                json.dumps(
                    {
                        "command": "init",
                        "created": result.created,
                        "profile": result.name,
                        "application_key": result.application_key,
                        "endpoint": result.endpoint,
                        "has_consumer_key": result.has_consumer_key,
                        "profile_path": result.profile_path,
                    },
                    sort_keys=True,
                )
            )
            return 0
        print("Created OVHcloud profile" if result.created else "Loaded existing OVHcloud profile")
        print(f"profile: {result.name}")
        print(f"applicationKey: {result.application_key}")
        print(f"endpoint: {result.endpoint}")
        print(f"profilePath: {result.profile_path}")
        return 0

    if args.command == "login":
        rules = [_parse_rule(rule) for rule in args.rule]
        ok, data = asyncio.run(_login(args, rules))
        if not ok or not isinstance(data, dict) or not data.get("consumerKey"):
            print(json.dumps({"command": "login", "ok": False, "data": data}, sort_keys=True))
            return 1

        profile = save_consumer_key(str(data["consumerKey"]), name=args.profile, home_dir=args.home)
        if args.json:
            print(
                json.dumps(
                    {
                        "command": "login",
                        "ok": True,
                        "profile": profile.name,
                        "state": data.get("state"),
                        "validation_url": data.get("validationUrl"),
                    },
                    sort_keys=True,
                )
            )
            return 0
        print(f"Consumer key stored in profile '{profile.name}'.")
        print(f"Validate it at: {data.get('validationUrl')}")
        return 0

    if args.command == "call":
        try:
            body = json.loads(args.data) if args.data is not None else None
        except json.JSONDecodeError as error:
            print(f"Invalid --data JSON: {error}", file=sys.stderr)
            return 2
        # Fail on a missing profile before any event loop is started.
        load_profile(name=args.profile, home_dir=args.home)
        ok, status, data = asyncio.run(_call(args, body))
        print(json.dumps({"ok": ok, "status": status, "data": data}, sort_keys=True))
        return 0 if ok else 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
