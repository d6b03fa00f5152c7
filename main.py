#!/usr/bin/env python3
"""
gatekeep -- registration, session login and a TTL-cached data endpoint.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 0.0.0.0 --port 3000
  python main.py --reload

Environment variables (see core/config.py for the full list):
  BCRYPT_ROUNDS         bcrypt cost factor (default 10)
  SESSION_TTL_SECONDS   absolute session lifetime; 0 = until logout (default)
  SECURE_COOKIES        set to true behind HTTPS
"""

import argparse

import uvicorn

_DEFAULT_PORT = 3000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the gatekeep web service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_DEFAULT_PORT,
        help=f"Port to listen on (default: {_DEFAULT_PORT})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()
    print(f"\ngatekeep -- listening on http://{args.host}:{args.port}\n")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
