#!/usr/bin/env python3
"""
Quillpost API server

Runs the authentication API or prepares its database.
"""

import argparse
import asyncio
import logging
import sys

from quillpost.config import load_config
from quillpost.db import Database


async def init_db() -> None:
    """Create missing tables on the configured database."""
    config = load_config()
    database = Database(config.database)
    try:
        await database.create_all()
    finally:
        await database.dispose()


def main():
    parser = argparse.ArgumentParser(
        description="Quillpost authentication API"
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create database tables and exit"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Bind address (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Bind port (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    logger = logging.getLogger(__name__)

    try:
        if args.init_db:
            asyncio.run(init_db())
            logger.info("Database initialized")
            return 0

        import uvicorn

        uvicorn.run(
            "api.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="debug" if args.verbose else "info",
        )
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
