"""Database management CLI.

Usage:
    order-core-manage setup-db   # Create all tables
    order-core-manage drop-db    # Drop all tables

The target database comes from ``ORDER_CORE_DATABASE_URL`` (or ``--database-url``).
"""

import argparse
import sys

from order_core.adapters.db.sqlalchemy.session import create_db_engine, create_schema, drop_schema
from order_core.config import Settings, get_settings


def _settings(database_url: str | None) -> Settings:
    settings = get_settings()
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})
    return settings


def setup_database(database_url: str | None = None) -> None:
    """Create the schema on the configured database."""
    engine = create_db_engine(_settings(database_url))
    print(f"Creating schema on {engine.url.render_as_string(hide_password=True)}...")
    create_schema(engine)
    engine.dispose()
    print("Done.")


def drop_database(database_url: str | None = None) -> None:
    """Drop the schema from the configured database."""
    engine = create_db_engine(_settings(database_url))
    print(f"Dropping schema on {engine.url.render_as_string(hide_password=True)}...")
    drop_schema(engine)
    engine.dispose()
    print("Done.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Order core database management")
    parser.add_argument("--database-url", help="Override ORDER_CORE_DATABASE_URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database(args.database_url)
    elif args.command == "drop-db":
        drop_database(args.database_url)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
