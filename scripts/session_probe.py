"""Command-line probe for the session layer.

Commands::

    # Validate SESSION_* settings from the environment or a .env file.
    python -m scripts.session_probe check --env-file .env

    # Show when an access token expires and when it would be renewed.
    python -m scripts.session_probe inspect eyJhbGciOi...

    # Sign in against a live API, verify the session, then sign out.
    python -m scripts.session_probe login --email me@example.com
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from session_client.clients import AuthAPIError
from session_client.core.config import SessionSettings, _load_env_file
from session_client.core.logging import configure_logging
from session_client.dependencies import build_session
from session_client.services import SessionExpiredError
from session_client.utils.jwt import get_token_expiration, time_until_expiration

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_AUTH_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _load_settings(env_file: Path | None) -> SessionSettings:
    if env_file is not None:
        if not env_file.exists():
            raise FileNotFoundError(f"Environment file {env_file} does not exist.")
        _load_env_file(str(env_file))
    return SessionSettings()  # type: ignore[call-arg]


def _check(settings: SessionSettings) -> int:
    print(f"API base URL:     {settings.base_url}")
    print(f"Refresh margin:   {settings.renewal.safety_margin_seconds:g}s")
    print(f"Renewal timeout:  {settings.renewal.timeout_seconds:g}s")
    print(f"Profile cache:    {Path(settings.profile_cache_path).expanduser()}")
    print("Settings OK.")
    return EXIT_OK


def _inspect(token: str, settings: SessionSettings) -> int:
    expiration = get_token_expiration(token)
    if expiration is None:
        print("Token is not a JWT with an exp claim.", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    expires_at = datetime.fromtimestamp(expiration, tz=timezone.utc)
    remaining = time_until_expiration(token)
    print(f"Expires at:       {expires_at.isoformat()}")
    if remaining is None:
        print("Status:           expired")
        return EXIT_OK

    margin = settings.renewal.safety_margin_seconds
    delay = max(0.0, remaining - margin)
    print(f"Time remaining:   {remaining:.0f}s")
    if delay < 1:
        print("Renewal:          immediate (inside the safety margin)")
    else:
        print(f"Renewal in:       {delay:.0f}s")
    return EXIT_OK


async def _login(email: str, password: str, settings: SessionSettings) -> int:
    session = build_session(settings)
    try:
        started = time.monotonic()
        result = await session.login(email, password)
        print(f"Signed in as {result.user.email} ({time.monotonic() - started:.2f}s)")
        delay = session.scheduler.scheduled_delay
        if delay is not None:
            print(f"Next renewal in {delay:.0f}s")
        user = await session.current_user()
        print(f"API confirms user id {user.id}")
        await session.logout()
        print("Signed out.")
        return EXIT_OK
    except (AuthAPIError, SessionExpiredError) as exc:
        print(f"Authentication failed: {exc}", file=sys.stderr)
        return EXIT_AUTH_ERROR
    finally:
        await session.aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Probe the session client configuration and API.")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional .env file to load before reading settings.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Validate settings and print the effective values.")

    inspect_parser = subparsers.add_parser(
        "inspect", help="Decode an access token and show its renewal schedule."
    )
    inspect_parser.add_argument("token", help="Access token (JWT) to inspect.")

    login_parser = subparsers.add_parser(
        "login", help="Sign in, verify with the API, then sign out."
    )
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument(
        "--password",
        default=None,
        help="Password; prompted for when omitted.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args.env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    configure_logging(settings.log_level)

    command: str = args.command
    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: _check(settings),
        "inspect": lambda: _inspect(args.token, settings),
        "login": lambda: asyncio.run(
            _login(args.email, args.password or getpass.getpass("Password: "), settings)
        ),
    }
    return handlers[command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
