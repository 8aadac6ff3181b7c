"""CLI for running the legislative sync and scoring pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

from app.config import settings

if TYPE_CHECKING:
    from pipeline.orchestrator import SyncOptions
    from pipeline.results import StageResult
    from pipeline.storage.base import SyncStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)-5.5s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

STAGE_COMMANDS = {
    "sync-legislators": "sync_legislators",
    "sync-bills": "sync_bills",
    "sync-votes": "sync_votes",
    "calculate-scores": "calculate_scores",
    "full-sync": "full_sync",
}


async def _make_store(dry_run: bool) -> SyncStore:
    """Build the store: in-memory for dry runs, else the configured database."""
    from pipeline.scoring.keywords import DEFAULT_TOPICS
    from pipeline.storage import MemorySyncStore, SqlSyncStore

    if dry_run:
        store = MemorySyncStore()
        await store.seed_topics(
            [(t.name, t.description, t.keywords) for t in DEFAULT_TOPICS]
        )
        logger.info("Dry run: writing to an in-memory store")
        return store

    from app.models.base import async_session_maker

    return SqlSyncStore(async_session_maker)


def _print_result(command: str, result: StageResult) -> None:
    print(f"\n{command}: {'OK' if result.success else 'FAILED'}")
    print(f"  Duration: {result.duration_ms} ms")
    for key, value in result.counts.items():
        print(f"  {key}: {value}")
    if result.errors:
        print(f"  Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"    - {error}")


async def init_db_command() -> int:
    """Create all tables.

    Returns:
        0 on success, 1 on failure.
    """
    from sqlalchemy.exc import SQLAlchemyError

    from app.models.base import create_tables

    try:
        await create_tables()
    except SQLAlchemyError as e:
        logger.error(f"Failed to create tables: {e}")
        return 1
    logger.info("Tables created")
    return 0


async def seed_topics_command() -> int:
    """Insert the default topic catalogue.

    Returns:
        0 on success, 1 on failure.
    """
    from pipeline.errors import PersistenceError
    from pipeline.scoring.keywords import DEFAULT_TOPICS

    store = await _make_store(dry_run=False)
    try:
        inserted = await store.seed_topics(
            [(t.name, t.description, t.keywords) for t in DEFAULT_TOPICS]
        )
    except PersistenceError as e:
        logger.error(f"Failed to seed topics: {e}")
        return 1
    logger.info(f"Seeded {inserted} topics ({len(DEFAULT_TOPICS) - inserted} present)")
    return 0


async def run_stage_command(
    command: str, options: SyncOptions, dry_run: bool = False, as_json: bool = False
) -> int:
    """Run one pipeline entry point and report its result.

    Args:
        command: CLI command name, e.g. "sync-bills".
        options: Run configuration.
        dry_run: Use the in-memory store.
        as_json: Print the result as JSON instead of a summary.

    Returns:
        0 when the result is a success, 1 otherwise.
    """
    from pipeline.orchestrator import SyncOrchestrator

    store = await _make_store(dry_run)
    orchestrator = SyncOrchestrator(store, options)
    result = await getattr(orchestrator, STAGE_COMMANDS[command])()

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(command, result)
    return 0 if result.success else 1


def _add_sync_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--congress",
        type=int,
        default=settings.default_congress,
        help=f"Congress number (default: {settings.default_congress})",
    )
    parser.add_argument(
        "--legislator-limit",
        type=int,
        help="Maximum member records to read per chamber",
    )
    parser.add_argument(
        "--bill-limit",
        type=int,
        help="Maximum bills to read",
    )
    parser.add_argument(
        "--vote-limit",
        type=int,
        help="Maximum vote events to read per chamber",
    )
    parser.add_argument(
        "--skip-scores",
        action="store_true",
        help="Leave out the scoring stage (full-sync only)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Write to an in-memory store instead of the database",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Legislator sync and ideological scoring pipeline CLI"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # =========================================================================
    # Setup commands
    # =========================================================================

    subparsers.add_parser("init-db", help="Create database tables")
    subparsers.add_parser("seed-topics", help="Insert the default topic catalogue")

    # =========================================================================
    # Pipeline commands
    # =========================================================================

    stage_help = {
        "sync-legislators": "Sync current members of both chambers",
        "sync-bills": "Ingest, score and tag bills",
        "sync-votes": "Sync roll-call votes for both chambers",
        "calculate-scores": "Recompute topic and aggregate scores",
        "full-sync": "Run every stage in order",
    }
    for command, help_text in stage_help.items():
        _add_sync_arguments(subparsers.add_parser(command, help=help_text))

    args = parser.parse_args(argv)

    if args.command == "init-db":
        return asyncio.run(init_db_command())

    elif args.command == "seed-topics":
        return asyncio.run(seed_topics_command())

    elif args.command in STAGE_COMMANDS:
        from pipeline.orchestrator import SyncOptions

        options = SyncOptions(
            congress=args.congress,
            legislator_limit=args.legislator_limit,
            bill_limit=args.bill_limit,
            vote_limit=args.vote_limit,
            skip_scores=args.skip_scores,
        )
        return asyncio.run(
            run_stage_command(
                args.command,
                options,
                dry_run=args.dry_run,
                as_json=args.json,
            )
        )

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
