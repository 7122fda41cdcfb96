"""Utility to create database tables."""

import asyncio
import sys

from .config import ConfigError, get_settings
from .database import Database


async def create_tables(database_url: str) -> None:
    """Create all database tables using the SQLAlchemy metadata."""
    database = Database(database_url)
    try:
        await database.create_all()
    finally:
        await database.dispose()


def main() -> None:
    try:
        settings = get_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)
    asyncio.run(create_tables(settings.database_url))


if __name__ == "__main__":
    main()
