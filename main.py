#!/usr/bin/env python3
"""
Chirpy -- short-form message service backend.

Usage:
  python main.py
  python main.py --port 9000
  python main.py --host 127.0.0.1 --reload

Environment variables (or .env):
  DB_URL       SQLAlchemy database URL (default: sqlite file next to this script)
  JWT_SECRET   Signing key for access tokens, at least 32 characters
  POLKA_KEY    API key Polka sends with upgrade webhooks
  PLATFORM     "dev" enables POST /admin/reset
  DEBUG        "true" generates a throwaway JWT_SECRET when none is set
"""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="chirpy",
        description="Serve the Chirpy API, admin pages and /app file server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --port 9000
  PLATFORM=dev DEBUG=true python main.py --reload
        """,
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",  # nosec B104 -- server is meant to be reachable
        help="Interface to bind (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default="info",
        help="uvicorn log level (default: info)",
    )
    args = parser.parse_args()

    print(f"Chirpy is starting on port {args.port}")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
