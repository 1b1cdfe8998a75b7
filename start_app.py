# start_app.py
"""Prepare the database and launch the API server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

import config


async def prepare_database(settings: config.Settings) -> bool:
    """Create the schema and seed the sample menu; return ``True`` if seeded."""

    from inroom.app.db import create_session_factory, init_models
    from inroom.app.repos_sqlalchemy.menu_repo_sql import MenuRepoSQL

    session_factory, engine = create_session_factory(settings.database_url)
    try:
        await init_models(engine)
        return await MenuRepoSQL(session_factory).seed_default(
            settings.default_menu_version
        )
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    """Load settings, bootstrap the schema and menu, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--skip-seed",
        action="store_true",
        help="Start without creating the schema or seeding the sample menu",
    )
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file
    config.get_settings.cache_clear()
    settings = config.get_settings()

    from inroom.app.obs.logging import configure_logging

    configure_logging(logging.INFO)

    if not args.skip_seed:
        if asyncio.run(prepare_database(settings)):
            print(f"seeded menu {settings.default_menu_version}", file=sys.stderr)

    uvicorn.run(
        "inroom.app.main:create_app",
        factory=True,
        host="0.0.0.0",  # nosec B104: bind for local development
        port=args.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
