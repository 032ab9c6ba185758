"""
ONE Engine - main entry point.

    one-engine serve                      run the API with uvicorn
    one-engine token --user-id user_123   print a signed access token
"""

from __future__ import annotations

import argparse
from datetime import timedelta

import uvicorn

from one_engine.auth import create_access_token
from one_engine.config import get_settings


def serve(args: argparse.Namespace) -> None:
    settings = get_settings()
    uvicorn.run(
        "one_engine.api.app:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


def token(args: argparse.Namespace) -> None:
    settings = get_settings()
    if settings.is_production:
        raise SystemExit("Refusing to mint tokens in production")

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(
        settings,
        user_id=args.user_id,
        role=args.role,
        project_id=args.project_id,
        email=args.email,
        expires_delta=expires,
    ))


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(prog="one-engine")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host")
    p_serve.add_argument("--port", type=int)
    p_serve.add_argument("--reload", action="store_true")
    p_serve.set_defaults(func=serve)

    p_token = sub.add_parser("token", help="Mint a development access token")
    p_token.add_argument("--user-id", required=True)
    p_token.add_argument("--role", default="user")
    p_token.add_argument("--project-id")
    p_token.add_argument("--email")
    p_token.add_argument("--minutes", type=int)
    p_token.set_defaults(func=token)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
