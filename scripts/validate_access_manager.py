#!/usr/bin/env python3
"""Validate Midaz client configuration for plugin (access manager) auth

This script checks that the MIDAZ_* and PLUGIN_AUTH_* variables are set
consistently and, with --fetch-token, requests a token from the access
manager to prove the credentials work.

Usage:
    python scripts/validate_access_manager.py [--env-file .env] [--fetch-token]
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import httpx
from dotenv import load_dotenv

from midaz_client.core.config import Config
from midaz_client.infrastructure.http import TokenManager
from midaz_client.shared.exceptions import MidazError


class Colors:
    """ANSI color codes for terminal output"""

    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    RESET = "\033[0m"


def check(condition: bool, success_msg: str, error_msg: str) -> bool:
    """Print check result with color"""
    if condition:
        print(f"{Colors.GREEN}✓{Colors.RESET} {success_msg}")
        return True
    print(f"{Colors.RED}✗{Colors.RESET} {error_msg}")
    return False


def warn(msg: str) -> None:
    """Print warning message"""
    print(f"{Colors.YELLOW}⚠{Colors.RESET}  {msg}")


def info(msg: str) -> None:
    """Print info message"""
    print(f"{Colors.BLUE}ℹ{Colors.RESET}  {msg}")


def validate_environment() -> bool:
    """Check the raw environment before building a Config

    Returns:
        True if all checks pass, False otherwise
    """
    all_passed = True

    print(f"\n{Colors.BLUE}=== Environment ==={Colors.RESET}\n")

    environment = os.getenv("MIDAZ_ENVIRONMENT", "local")
    info(f"MIDAZ_ENVIRONMENT={environment}")

    for name in ("MIDAZ_BASE_URL", "MIDAZ_ONBOARDING_URL", "MIDAZ_TRANSACTION_URL"):
        value = os.getenv(name)
        if value:
            all_passed &= check(
                value.startswith(("http://", "https://")),
                f"{name} set: {value}",
                f"{name} is not an http(s) URL: {value}",
            )

    plugin_auth = os.getenv("PLUGIN_AUTH_ENABLED", "").lower() == "true"
    if not plugin_auth:
        if os.getenv("MIDAZ_AUTH_TOKEN"):
            check(True, "Static token configured (MIDAZ_AUTH_TOKEN)", "")
        else:
            warn("No MIDAZ_AUTH_TOKEN and plugin auth disabled: requests are unauthenticated")
        return all_passed

    check(True, "Plugin auth enabled (PLUGIN_AUTH_ENABLED=true)", "")

    address = os.getenv("PLUGIN_AUTH_ADDRESS")
    all_passed &= check(
        bool(address),
        f"Access manager address present: {address}",
        "Access manager address missing (PLUGIN_AUTH_ADDRESS)",
    )

    client_id = os.getenv("MIDAZ_CLIENT_ID")
    all_passed &= check(
        bool(client_id),
        f"Client ID present: {client_id[:6]}..." if client_id else "",
        "Client ID missing (MIDAZ_CLIENT_ID)",
    )

    secret = os.getenv("MIDAZ_CLIENT_SECRET")
    all_passed &= check(
        bool(secret),
        f"Client secret present ({len(secret)} chars)" if secret else "",
        "Client secret missing (MIDAZ_CLIENT_SECRET)",
    )

    if os.getenv("MIDAZ_AUTH_TOKEN"):
        warn("MIDAZ_AUTH_TOKEN is ignored while plugin auth is enabled")

    return all_passed


async def fetch_token(config: Config) -> bool:
    """Request one token from the access manager"""
    print(f"\n{Colors.BLUE}=== Token request ==={Colors.RESET}\n")

    if not config.access_manager.enabled:
        warn("Plugin auth disabled, nothing to fetch")
        return True

    async with httpx.AsyncClient(timeout=config.timeout) as client:
        manager = TokenManager(config.access_manager, http_client=client)
        try:
            token = await manager.ensure_token()
        except MidazError as e:
            return check(False, "", f"Token request failed: {e}")

    check(True, f"Token received ({len(token)} chars)", "")
    cached = manager.cached_token
    expires_at = cached.expires_at if cached else None
    if expires_at:
        info(f"Token expires at {expires_at.isoformat()}")
    else:
        warn("Access manager did not report an expiry")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--env-file", type=Path, help="Load variables from a .env file")
    parser.add_argument(
        "--fetch-token",
        action="store_true",
        help="Request a token from the access manager",
    )
    args = parser.parse_args()

    if args.env_file:
        load_dotenv(args.env_file)

    all_passed = validate_environment()

    try:
        config = Config.from_env()
    except MidazError as e:
        check(False, "", f"Configuration rejected: {e}")
        all_passed = False
    else:
        check(True, "Configuration loaded", "")
        if args.fetch_token:
            all_passed &= asyncio.run(fetch_token(config))

    print(f"\n{Colors.BLUE}=== Summary ==={Colors.RESET}\n")
    if all_passed:
        print(f"{Colors.GREEN}✓ All configuration checks passed!{Colors.RESET}\n")
        return 0

    print(f"{Colors.RED}✗ Some configuration checks failed!{Colors.RESET}\n")
    info("Fix the issues above and try again.")
    print()
    return 1


if __name__ == "__main__":
    sys.exit(main())
