#!/usr/bin/env python3
"""
Command-line host for the Natter client
=======================================
Plays the role of the page: it submits credentials, renders resolved JSON
and receives the login redirect.

All configuration flows through ``ClientRunConfig`` (flags → ``NATTER_*``
environment / ``.env`` → defaults).

Run with: python -m natter_client <command> [options]

Commands:
    login                       Log in and store the session
    request METHOD PATH         Authenticated JSON request (``--login`` first
                                for strategies that do not outlive the process)
    create-space NAME OWNER     POST /spaces
    resolve URL                 Resolve one capability URL
    traverse URL                Resolve a capability list, element by element
    links FILE --base URL       List capability links found in an HTML file

Exit codes: 0 ok, 1 request/capability failure, 2 usage/config error,
3 authentication required.
"""

import argparse
import asyncio
import json
import logging
import sys

from .auth.credentials import Credentials, resolve_credentials
from .client import Navigator
from .errors import (
    AuthRequiredError,
    ConfigError,
    LoginError,
    NatterClientError,
)
from .run_config import ClientRunConfig

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_AUTH = 3


# ---------------------------------------------------------------------------
# Host collaborators
# ---------------------------------------------------------------------------

def render(data) -> None:
    """Render callback: pretty-print resolved JSON."""
    print(json.dumps(data, indent=2, sort_keys=True))


class ConsoleNavigator(Navigator):
    """Tells the user where to log in again."""

    def redirect(self, location: str) -> None:
        super().redirect(location)
        print(f"\n  Session expired or missing - log in again ({location})\n", file=sys.stderr)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def _login(cfg: ClientRunConfig, client, interactive: bool = True) -> None:
    creds = resolve_credentials(
        Credentials(username=cfg.username or "", password=cfg.password or ""),
        interactive=interactive,
    )
    await cfg.build_login_manager(client).login(creds)


async def cmd_login(cfg: ClientRunConfig, args) -> int:
    async with cfg.build_client(navigator=ConsoleNavigator()) as client:
        await _login(cfg, client)
    print(f"  Logged in ({cfg.auth_strategy} session)")
    if cfg.auth_strategy != "durable-storage":
        print("  Note: this session ends with the process.")
    return EXIT_OK


async def cmd_request(cfg: ClientRunConfig, args) -> int:
    body = json.loads(args.data) if args.data else None
    async with cfg.build_client(navigator=ConsoleNavigator()) as client:
        if args.login:
            await _login(cfg, client)
        render(await client.request(args.method, args.path, body))
    return EXIT_OK


async def cmd_create_space(cfg: ClientRunConfig, args) -> int:
    from .api import NatterAPI

    async with cfg.build_client(navigator=ConsoleNavigator()) as client:
        if args.login:
            await _login(cfg, client)
        render(await NatterAPI(client).create_space(args.name, args.owner))
    return EXIT_OK


async def cmd_resolve(cfg: ClientRunConfig, args) -> int:
    failures = []
    async with cfg.build_resolver(on_error=failures.append) as resolver:
        await resolver.resolve(args.url, render)
    for exc in failures:
        logger.error(f"[CAPABILITY] {exc}")
    return EXIT_FAILURE if failures else EXIT_OK


async def cmd_traverse(cfg: ClientRunConfig, args) -> int:
    failures = []
    async with cfg.build_resolver(on_error=failures.append) as resolver:
        results = await resolver.traverse(args.url, render)
    for exc in failures:
        logger.error(f"[CAPABILITY] {exc}")
    logger.info(f"Rendered {len(results)} items, {len(failures)} failures")
    return EXIT_FAILURE if failures else EXIT_OK


async def cmd_links(cfg: ClientRunConfig, args) -> int:
    from .links import extract_capability_links

    with open(args.file, encoding="utf-8") as fh:
        html = fh.read()
    for link in extract_capability_links(html, args.base, cfg.capability_slot):
        print(link)
    return EXIT_OK


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="natter_client",
        description="Natter API client with capability URL traversal",
    )
    parser.add_argument("--api-url", dest="api_url", help="API origin")
    parser.add_argument(
        "--strategy", choices=["cookie", "session-storage", "durable-storage"],
        help="Session strategy",
    )
    parser.add_argument(
        "--credential-transport", dest="credential_transport",
        choices=["basic", "json"], help="How credentials are sent on login",
    )
    parser.add_argument(
        "--csrf-source", dest="csrf_source", choices=["body", "cookie"],
        help="Where the anti-forgery token is delivered (cookie strategy)",
    )
    parser.add_argument(
        "--slot", choices=["fragment", "userinfo"],
        help="Where capability URLs embed their token",
    )
    parser.add_argument("--storage-path", dest="storage_path", help="Durable storage file")
    parser.add_argument("--username", "-u", help="Login username")
    parser.add_argument("--env-file", dest="env_file", help="Path to a .env file")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS verification")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Log in and store the session")
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("request", help="Authenticated JSON request")
    p.add_argument("method")
    p.add_argument("path")
    p.add_argument("--data", "-d", help="JSON body")
    p.add_argument("--login", action="store_true", help="Log in first")
    p.set_defaults(func=cmd_request)

    p = sub.add_parser("create-space", help="Create a social space")
    p.add_argument("name")
    p.add_argument("owner")
    p.add_argument("--login", action="store_true", help="Log in first")
    p.set_defaults(func=cmd_create_space)

    p = sub.add_parser("resolve", help="Resolve a capability URL")
    p.add_argument("url")
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("traverse", help="Resolve a list of capability URLs in order")
    p.add_argument("url")
    p.set_defaults(func=cmd_traverse)

    p = sub.add_parser("links", help="Extract capability links from an HTML file")
    p.add_argument("file")
    p.add_argument("--base", required=True, help="URL the HTML was loaded from")
    p.set_defaults(func=cmd_links)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        cfg = ClientRunConfig.from_cli_args(args)
    except ConfigError as exc:
        logger.error(f"Configuration error: {exc}")
        return EXIT_USAGE

    if args.verbose:
        cfg.log_summary()

    try:
        return asyncio.run(args.func(cfg, args))
    except AuthRequiredError:
        return EXIT_AUTH
    except LoginError as exc:
        logger.error(f"Login failed: {exc}")
        return EXIT_AUTH
    except (json.JSONDecodeError, OSError) as exc:
        logger.error(f"Invalid input: {exc}")
        return EXIT_USAGE
    except NatterClientError as exc:
        logger.error(f"Error: {exc}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
