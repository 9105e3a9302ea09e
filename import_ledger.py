"""
FlipLedger command line.
Imports ledger CSV exports and prints the dashboard, daily returns and timeline.

Usage:
    python import_ledger.py import exports/flips.csv
    python import_ledger.py summary
    python import_ledger.py daily
    python import_ledger.py timeline
    python import_ledger.py records --status selling
"""

import argparse
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

import pandas as pd
from dotenv import load_dotenv

from config import Settings, get_settings
from db_engine import create_db_engine, init_db
from errors import MalformedInputError, StoreUnavailableError
from repositories import TradeRecordRepository
from services import AnalyticsService, ImportService

logger = logging.getLogger(__name__)


def format_gp(amount: int) -> str:
    """Abbreviate a GP amount, e.g. 1500000 -> '1.5M'."""
    if abs(amount) >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if abs(amount) >= 1_000:
        return f"{amount / 1_000:.1f}K"
    return str(amount)


def build_services(settings: Settings):
    """Create the engine, repository and services once for this process."""
    engine = create_db_engine(settings.database_url, echo=settings.db_echo)
    init_db(engine)
    repository = TradeRecordRepository(engine)
    importer = ImportService(repository)
    analytics = AnalyticsService(
        repository,
        starting_net_worth=settings.starting_net_worth,
        unit_investment_estimate=settings.unit_investment_estimate,
        max_workers=settings.aggregation_workers
    )
    return repository, importer, analytics


def _print_frame(rows: List[dict], columns: List[str]) -> None:
    if not rows:
        print("(no data)")
        return
    print(pd.DataFrame(rows, columns=columns).to_string(index=False))


def cmd_import(args, settings: Settings, importer: ImportService, **_) -> int:
    status = 0
    for path in args.files:
        result = importer.import_csv(path, max_bytes=settings.max_import_bytes)
        print(f"{path}: {result.summary()}")
        for error in result.row_errors:
            print(f"  {error}")
        if result.status == "info":
            status = 2
    return status


def cmd_summary(args, analytics: AnalyticsService, **_) -> int:
    summary = analytics.dashboard_summary()
    print(f"Total profit:    {format_gp(summary.total_profit)} ({summary.total_profit})")
    print(f"Completed flips: {summary.completed_flips}")
    print(f"Total records:   {summary.total_records}")
    print()
    print("Top flips")
    _print_frame(
        [record.model_dump() for record in summary.top_flips],
        ['item', 'status', 'bought', 'sold', 'profit', 'profit_ea', 'last_sell_time']
    )
    print()
    print("Top items")
    _print_frame([asdict(item) for item in summary.top_items], ['item', 'total_profit'])
    return 0


def cmd_daily(args, analytics: AnalyticsService, **_) -> int:
    buckets = analytics.daily_returns()
    _print_frame(
        [asdict(bucket) for bucket in buckets],
        ['date', 'total_trades', 'daily_profit', 'finished_trades', 'active_trades',
         'top_item', 'top_item_profit']
    )
    week = analytics.weekly_comparison()
    print()
    print(f"Last {len(week.week_data)} active days: {format_gp(week.week_total_profit)}")
    return 0


def cmd_timeline(args, analytics: AnalyticsService, **_) -> int:
    points = analytics.timeline()
    rows = []
    for point in points:
        row = asdict(point)
        row['roi'] = round(point.roi, 2)
        row['growth'] = round(point.growth, 4)
        rows.append(row)
    _print_frame(rows, ['date', 'daily_profit', 'net_worth', 'flips', 'items', 'roi', 'growth'])
    return 0


def cmd_records(args, repository: TradeRecordRepository, **_) -> int:
    records = repository.list_records(args.status)
    _print_frame(
        [record.model_dump() for record in records],
        ['id', 'account', 'item', 'status', 'bought', 'sold', 'profit', 'first_buy_time',
         'last_sell_time', 'import_timestamp']
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import and analyze flip ledger exports")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import one or more CSV exports")
    p_import.add_argument("files", nargs="+")
    p_import.set_defaults(handler=cmd_import)

    sub.add_parser("summary", help="Dashboard statistics").set_defaults(handler=cmd_summary)
    sub.add_parser("daily", help="Daily returns").set_defaults(handler=cmd_daily)
    sub.add_parser("timeline", help="Net worth timeline").set_defaults(handler=cmd_timeline)

    p_records = sub.add_parser("records", help="List records")
    p_records.add_argument("--status", help="Filter by status, e.g. FINISHED or SELLING")
    p_records.set_defaults(handler=cmd_records)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    settings = get_settings()
    if args.database_url:
        settings = settings.model_copy(update={'database_url': args.database_url})

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        repository, importer, analytics = build_services(settings)
        return args.handler(
            args,
            settings=settings,
            repository=repository,
            importer=importer,
            analytics=analytics
        )
    except (StoreUnavailableError, MalformedInputError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
