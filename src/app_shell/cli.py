import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from uuid import UUID

from src.adapters.clock import SystemClock
from src.adapters.sqlite.ledger import SQLiteViewLedger
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.simulate import run_simulation
from src.components.views import ViewAggregator, ViewRecorder
from src.rules.loader import ledger_config, load_rules
from src.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

DATA_DIR = os.environ.get("VIEWS_DATA_DIR", "data")
DB_PATH = os.path.join(DATA_DIR, "views.db")
RULES_PATH = os.environ.get("VIEWS_RULES_PATH", "rules.yaml")
MIGRATIONS_DIR = "migrations"


def get_rules() -> Rules:
    if not Path(RULES_PATH).exists():
        logger.error(f"Rules file {RULES_PATH} not found.")
        sys.exit(1)
    return load_rules(Path(RULES_PATH))


def handle_migrate(args: argparse.Namespace) -> None:
    os.makedirs(DATA_DIR, exist_ok=True)
    applied = SQLiteMigrator(DB_PATH, MIGRATIONS_DIR).run_migrations()
    print(f"Applied {len(applied)} migration(s).")


def handle_count(rules: Rules, args: argparse.Namespace) -> None:
    aggregator = ViewAggregator(SQLiteViewLedger(DB_PATH), config=ledger_config(rules))
    result = asyncio.run(aggregator.count(UUID(args.content_id)))
    if not result.success:
        logger.error(f"Count failed: {result.errors[0].message}")
        sys.exit(1)
    print(result.count)


def handle_history(rules: Rules, args: argparse.Namespace) -> None:
    aggregator = ViewAggregator(SQLiteViewLedger(DB_PATH), config=ledger_config(rules))
    result = asyncio.run(aggregator.list_for_viewer(UUID(args.viewer_id), args.limit))
    if not result.success:
        logger.error(f"History failed: {result.errors[0].message}")
        sys.exit(1)
    for item in result.items:
        title = item.content.title if item.content else "(unknown content)"
        print(f"{item.record.viewed_at.isoformat()}  {item.record.content_id}  {title}")


def handle_record(rules: Rules, args: argparse.Namespace) -> None:
    recorder = ViewRecorder(
        SQLiteViewLedger(DB_PATH), clock=SystemClock(), config=ledger_config(rules)
    )
    creator_id = UUID(args.creator_id) if args.creator_id else None
    result = asyncio.run(recorder.record(UUID(args.viewer_id), UUID(args.content_id), creator_id))
    print(result.reason.value)
    if not result.success:
        sys.exit(1)


def handle_simulate(rules: Rules, args: argparse.Namespace) -> None:
    with open(args.script) as f:
        script = json.load(f)
    outcome = asyncio.run(run_simulation(script, SQLiteViewLedger(DB_PATH), rules))
    reason = outcome.result.reason.value if outcome.result else "not_confirmed"
    print(f"mounted={outcome.mounted} recorded={outcome.recorded} outcome={reason}")


def main() -> None:
    parser = argparse.ArgumentParser(description="View Ledger CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending migrations")

    count_parser = subparsers.add_parser("count", help="Count views of a content item")
    count_parser.add_argument("content_id")

    history_parser = subparsers.add_parser("history", help="List views by a viewer")
    history_parser.add_argument("viewer_id")
    history_parser.add_argument("--limit", type=int, default=None)

    record_parser = subparsers.add_parser("record", help="Record a view")
    record_parser.add_argument("viewer_id")
    record_parser.add_argument("content_id")
    record_parser.add_argument("--creator-id", default=None)

    simulate_parser = subparsers.add_parser("simulate", help="Replay a signal script")
    simulate_parser.add_argument("script", help="Path to a JSON signal script")

    args = parser.parse_args()

    if args.command == "migrate":
        handle_migrate(args)
        return

    rules = get_rules()
    if args.command == "count":
        handle_count(rules, args)
    elif args.command == "history":
        handle_history(rules, args)
    elif args.command == "record":
        handle_record(rules, args)
    elif args.command == "simulate":
        handle_simulate(rules, args)


if __name__ == "__main__":
    main()
