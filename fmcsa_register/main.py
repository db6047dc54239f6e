"""
Main entry point for the FMCSA Register scraper.
"""

import sys
import json
import logging
import argparse
from datetime import timedelta
import structlog

from .core.config import settings
from .core.dates import parse_iso_date, today_utc
from .core.exceptions import PersistenceFailure
from .orchestration import RegisterPipeline
from .storage import RegisterDB


def setup_logging():
    """Configure structured logging."""
    settings.logs_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _iso_date(value: str):
    try:
        return parse_iso_date(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}. Use YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FMCSA Register scraper and entry store"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run pipeline command
    run_parser = subparsers.add_parser('run', help='Scrape the register for one date')
    run_parser.add_argument(
        '--date',
        type=_iso_date,
        help='Date to scrape (YYYY-MM-DD, defaults to today UTC)'
    )
    run_parser.add_argument(
        '--refresh',
        action='store_true',
        help='Ignore cached entries for the date'
    )

    # Backfill command
    backfill_parser = subparsers.add_parser('backfill', help='Scrape a range of dates')
    backfill_parser.add_argument('--start', type=_iso_date, required=True, help='First date (YYYY-MM-DD)')
    backfill_parser.add_argument('--end', type=_iso_date, help='Last date (YYYY-MM-DD, defaults to today UTC)')
    backfill_parser.add_argument('--workers', type=int, help=f'Parallel dates (default: {settings.max_workers})')

    # Query command
    query_parser = subparsers.add_parser('query', help='Query stored entries')
    query_parser.add_argument('--category', help="Category label, or 'all'")
    query_parser.add_argument('--from', dest='date_from', type=_iso_date, help='First fetch date')
    query_parser.add_argument('--to', dest='date_to', type=_iso_date, help='Last fetch date')
    query_parser.add_argument('--search', help='Substring of docket number or title')
    query_parser.add_argument('--limit', type=int, help=f'Maximum rows (default: {settings.default_query_limit})')
    query_parser.add_argument('--json', action='store_true', help='Print entries as JSON')

    subparsers.add_parser('categories', help='List stored categories')

    stats_parser = subparsers.add_parser('stats', help='Entry counts by category')
    stats_parser.add_argument('--from', dest='date_from', type=_iso_date, help='First fetch date')
    stats_parser.add_argument('--to', dest='date_to', type=_iso_date, help='Last fetch date')

    # Cleanup command
    cleanup_parser = subparsers.add_parser('cleanup', help='Delete old entries')
    cleanup_parser.add_argument(
        '--before',
        type=_iso_date,
        help='Delete entries fetched before this date'
    )
    cleanup_parser.add_argument(
        '--days',
        type=int,
        default=90,
        help='Days of data to keep when --before is not given (default: 90)'
    )

    subparsers.add_parser('health', help='Check system health')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging()
    logger = structlog.get_logger(__name__)

    try:
        if args.command == 'run':
            pipeline = RegisterPipeline()
            pipeline_run = pipeline.run(args.date, refresh=args.refresh)

            print(f"\n=== FMCSA Register {pipeline_run.register_date} ===")
            print(f"Status: {pipeline_run.status}")
            print(f"Entries extracted: {pipeline_run.entries_extracted}")
            print(f"Entries saved: {pipeline_run.entries_saved}")
            if pipeline_run.error_message:
                print(f"Error: {pipeline_run.error_message}")

            sys.exit(0 if pipeline_run.succeeded else 1)

        elif args.command == 'backfill':
            end_date = args.end or today_utc()
            if end_date < args.start:
                logger.error("Backfill end date is before start date",
                             start=str(args.start), end=str(end_date))
                sys.exit(1)

            pipeline = RegisterPipeline()
            runs = pipeline.run_range(args.start, end_date, args.workers)

            print("\n=== Backfill Results ===")
            for pipeline_run in runs:
                status_icon = "✅" if pipeline_run.succeeded else "❌"
                print(f"{status_icon} {pipeline_run.fetch_date} ({pipeline_run.register_date}): "
                      f"{pipeline_run.status}, {pipeline_run.entries_saved} saved")

            sys.exit(0 if all(run.succeeded for run in runs) else 1)

        elif args.command == 'query':
            entries = RegisterDB().query_entries(
                category=args.category,
                date_from=args.date_from,
                date_to=args.date_to,
                search_term=args.search,
                limit=args.limit,
            )
            if args.json:
                print(json.dumps([entry.model_dump(mode="json") for entry in entries], indent=2))
            else:
                for entry in entries:
                    print(f"{entry.fetch_date}  {entry.number:<14} {entry.decided}  "
                          f"[{entry.category.value}] {entry.title}")
                print(f"\n{len(entries)} entries")

        elif args.command == 'categories':
            for category in RegisterDB().get_categories():
                print(category)

        elif args.command == 'stats':
            statistics = RegisterDB().get_statistics(args.date_from, args.date_to)
            print("\n=== Register Statistics ===")
            print(f"Total entries: {statistics.total_entries}")
            for category, count in sorted(statistics.by_category.items()):
                print(f"• {category}: {count}")

        elif args.command == 'cleanup':
            before = args.before or (today_utc() - timedelta(days=args.days))
            logger.info("Starting data cleanup", before=str(before))
            deleted = RegisterDB().delete_entries_before(before)
            print(f"\n=== Data Cleanup Results ===")
            print(f"• Deleted entries: {deleted}")

        elif args.command == 'health':
            logger.info("Running health checks")
            health_status = RegisterPipeline().health_check()

            print("\n=== System Health Check ===")
            for component, status in health_status.items():
                status_icon = "✅" if status else "❌"
                print(f"{status_icon} {component.replace('_', ' ').title()}: {'OK' if status else 'FAILED'}")

            sys.exit(0 if all(health_status.values()) else 1)

    except PersistenceFailure as e:
        logger.error("Storage error", error=str(e))
        print(f"❌ Storage error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
