"""
Command-line entry point for Essentials Tracker.

Usage Examples:
    # Create the database and tables
    python -m src.main init-db

    # List purchases issued in January 2026
    python -m src.main purchases --start 2026-01-01 --end 2026-01-31

    # Same, for one organization, written to CSV
    python -m src.main purchases --start 2026-01-01 --end 2026-01-31 --organization 1 --csv jan.csv
"""

import argparse
import logging
import sys
from datetime import date

from src.services.database import initialize_app_database, session_scope
from src.services.exceptions import ServiceError
from src.services.purchase_export_service import (
    csv_export_attributes,
    csv_export_headers,
    export_purchases_csv,
)
from src.services.purchase_service import list_purchases_during
from src.utils.config import get_config


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def init_db_cmd() -> int:
    """Create the database and tables."""
    initialize_app_database()
    print(f"Database ready at {get_config().database_path}")
    return 0


def purchases_cmd(start: date, end: date, organization_id=None, csv_path=None) -> int:
    """Print (or export) purchases issued between start and end, inclusive."""
    initialize_app_database()
    try:
        with session_scope() as session:
            purchases = list_purchases_during(start, end, organization_id, session=session)
            if csv_path:
                count = export_purchases_csv(purchases, csv_path)
                print(f"Exported {count} purchase(s) to {csv_path}")
                return 0

            print(" | ".join(csv_export_headers()))
            for purchase in purchases:
                print(" | ".join(csv_export_attributes(purchase)))
            print(f"{len(purchases)} purchase(s)")
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Essentials Tracker purchase utility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create the database and tables")

    purchases_parser = subparsers.add_parser(
        "purchases", help="List purchases issued within a date range"
    )
    purchases_parser.add_argument("--start", type=_parse_date, required=True, help="First date (inclusive)")
    purchases_parser.add_argument("--end", type=_parse_date, required=True, help="Last date (inclusive)")
    purchases_parser.add_argument(
        "--organization", dest="organization_id", type=int, help="Only this organization"
    )
    purchases_parser.add_argument("--csv", dest="csv_path", help="Write a CSV file instead of printing")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "init-db":
        return init_db_cmd()
    elif args.command == "purchases":
        return purchases_cmd(args.start, args.end, args.organization_id, args.csv_path)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
