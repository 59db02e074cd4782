#!/usr/bin/env python3
"""Issue a caller bearer token for local testing of the Group Live API."""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from typing import Any

from app.core.security import create_access_token

DEFAULT_TTL_MINUTES = 60


def build_claims(user_id: str, name: str | None = None, picture: str | None = None) -> dict[str, Any]:
    """Return the claims the API reads from caller tokens."""
    if not user_id.strip():
        raise ValueError("user id must not be empty")
    claims: dict[str, Any] = {"sub": user_id.strip()}
    if name:
        claims["name"] = name
    if picture:
        claims["picture"] = picture
    return claims


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", help="Value of the token subject (the caller uid).")
    parser.add_argument("--name", help="Optional display name claim.")
    parser.add_argument("--picture", help="Optional photo URL claim.")
    parser.add_argument(
        "--ttl-minutes",
        type=int,
        default=DEFAULT_TTL_MINUTES,
        help="Token lifetime in minutes.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        claims = build_claims(args.user_id, args.name, args.picture)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    print(create_access_token(claims, timedelta(minutes=args.ttl_minutes)))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
