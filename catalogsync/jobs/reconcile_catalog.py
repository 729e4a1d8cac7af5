"""
Job that reconciles the external catalog into the canonical store.

Walks every canonical set, queries the provider, and inserts cards that are
missing. Progress is checkpointed after every set, so an interrupted run
picks up where it stopped on the next invocation.

Usage:
    python -m catalogsync.jobs.reconcile_catalog [--resume-from N] [--max-sets N] [--dry-run]
"""

import argparse
import asyncio
import logging
import signal
import sys

from catalogsync.config import settings
from catalogsync.db.database import async_session_factory, init_db
from catalogsync.models.checkpoint import ImportOptions, ImportStats
from catalogsync.models.failure import AuthError
from catalogsync.services.reconciliation import ReconciliationOrchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reconcile_catalog",
        description="Import missing cards from the external catalog provider.",
    )
    parser.add_argument(
        "--resume-from",
        type=int,
        default=None,
        metavar="N",
        help="start at set index N instead of the stored checkpoint",
    )
    parser.add_argument(
        "--max-sets",
        type=int,
        default=None,
        metavar="N",
        help="process at most N sets in this run",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="match and parse listings without inserting cards",
    )
    return parser


def parse_options(argv: list[str] | None = None) -> ImportOptions:
    """Parse CLI arguments into ImportOptions."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.resume_from is not None and args.resume_from < 0:
        parser.error("--resume-from must be >= 0")
    if args.max_sets is not None and args.max_sets < 1:
        parser.error("--max-sets must be >= 1")
    return ImportOptions(
        resume_from_index=args.resume_from,
        max_sets=args.max_sets,
        dry_run=args.dry_run,
    )


def _install_signal_handlers(orchestrator: ReconciliationOrchestrator) -> None:
    """SIGINT/SIGTERM finish the current set, save the checkpoint, then exit."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform (e.g. Windows)
            logger.debug("Signal handler for %s not installed", sig.name)


async def run_reconciliation(options: ImportOptions | None = None) -> ImportStats:
    """
    Run one reconciliation pass with production collaborators.

    Args:
        options: Run options; defaults resume from the stored checkpoint

    Returns:
        Final ImportStats for the run
    """
    await init_db()
    orchestrator = ReconciliationOrchestrator.from_settings(settings, async_session_factory)
    _install_signal_handlers(orchestrator)
    try:
        return await orchestrator.run(options)
    finally:
        await orchestrator.aclose()


def report(stats: ImportStats) -> None:
    """Log the final run summary, including every recorded failure."""
    logger.info("Sets processed: %d", stats.sets_processed)
    logger.info("Cards added: %d", stats.cards_added)
    logger.info("Cards skipped (already present): %d", stats.cards_skipped)
    logger.info("Unmatched listings: %d", stats.unmatched_count)
    logger.info("Non-card listings: %d", stats.non_card_listings)
    logger.info("Retries: %d", stats.retries)
    if stats.planned_cards:
        logger.info("Cards a full run would add: %d", len(stats.planned_cards))
    for failure in stats.errors:
        logger.warning(
            "[%s] %s%s",
            failure.kind.value,
            f"{failure.set_name}: " if failure.set_name else "",
            failure.message,
        )
    if not stats.completed:
        logger.info("Run stopped before the last set; rerun to resume")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for catalog reconciliation."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    options = parse_options(argv)

    try:
        stats = asyncio.run(run_reconciliation(options))
    except AuthError as e:
        logger.error("Aborting: %s", e.to_failure().message)
        return 2

    report(stats)
    return 0


if __name__ == "__main__":
    sys.exit(main())
