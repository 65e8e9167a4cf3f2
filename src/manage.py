"""Logistics database management CLI.

Creates and drops the database schema of the logistics domain using the
setup_db/drop_db utilities.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create the logistics database schema."""
    from logistics.domain import logistics
    from logistics.utils.db import setup_db

    print("Initializing logistics domain...")
    logistics.init()
    print("Creating logistics database schema...")
    setup_db(logistics)
    print("Done.")


def drop_database():
    """Drop the logistics database schema."""
    from logistics.domain import logistics
    from logistics.utils.db import drop_db

    print("Initializing logistics domain...")
    logistics.init()
    print("Dropping logistics database schema...")
    drop_db(logistics)
    print("Done.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Logistics database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
