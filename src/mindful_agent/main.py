"""Application entrypoint — start the API server or run one-off commands."""

from __future__ import annotations

import argparse
import asyncio
import sys

import uvicorn

from mindful_agent.config import get_settings
from mindful_agent.logger import setup_logging


async def _reset_data() -> None:
    from mindful_agent.storage.blob import SqlBlobStore
    from mindful_agent.storage.database import init_db
    from mindful_agent.storage.state import AppState

    await init_db()
    state = AppState(SqlBlobStore())
    await state.load()
    await state.reset()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mindful-agent",
        description="Wrist-worn mindfulness companion: stress inference, haptic nudges, insights.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── serve ─────────────────────────────────────────────────
    serve_parser = sub.add_parser("serve", help="Start the API server.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # ── init-db ───────────────────────────────────────────────
    sub.add_parser("init-db", help="Create database tables.")

    # ── reset ─────────────────────────────────────────────────
    sub.add_parser("reset", help="Delete all events and insights and restore default settings.")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.log_json)

    if args.command == "serve":
        uvicorn.run(
            "mindful_agent.api.server:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
            reload=args.reload,
        )
    elif args.command == "init-db":
        from mindful_agent.storage.database import init_db

        asyncio.run(init_db())
        print("Database tables created.")
    elif args.command == "reset":
        asyncio.run(_reset_data())
        print("All companion data reset.")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
