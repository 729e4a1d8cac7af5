"""
Catalog Reconciliation Orchestrator.

Drives the end-to-end import, one canonical set at a time:

    checkpoint cursor -> fetch listings for set -> drop non-card products
    -> validate listing belongs to set -> parse card identity
    -> insert if absent -> advance checkpoint

INVARIANTS:
- Strictly sequential: one set, one listing, one request at a time
- Existing cards are never modified (insert-if-absent)
- A set whose fetch fails is recorded and skipped; the cursor still advances
- Only AuthError and database errors abort a run; every other failure lands
  in ImportStats.errors
- The checkpoint is saved after every set and cleared only on completion
- dry_run never inserts cards and never touches the stored checkpoint
"""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.config import Settings
from catalogsync.matching.set_matcher import SetMatcher, is_card_listing
from catalogsync.models.catalog import CanonicalSet, ExternalListing, ParsedIdentity
from catalogsync.models.checkpoint import (
    ImportCheckpoint,
    ImportOptions,
    ImportStats,
    PlannedCard,
    utcnow,
)
from catalogsync.models.failure import DuplicateError, NetworkError, NoMatchError, ParseError
from catalogsync.parsers.card_identity import parse_title
from catalogsync.services.canonical_store import CanonicalStore, SqlCanonicalStore
from catalogsync.services.catalog_client import CatalogClient
from catalogsync.services.checkpoint_store import CheckpointStore, build_checkpoint_store

logger = logging.getLogger(__name__)

TitleParser = Callable[[str], ParsedIdentity]


def build_query(canonical_set: CanonicalSet) -> str:
    """Search text for a set: its name with whitespace collapsed."""
    return " ".join(canonical_set.name.split())


class ReconciliationOrchestrator:
    """
    Sequential, checkpointed importer from the external catalog.

    Only one run may be active per instance, and operators must not run two
    instances against the same checkpoint.
    """

    def __init__(
        self,
        client: CatalogClient,
        store: CanonicalStore,
        checkpoints: CheckpointStore,
        matcher: SetMatcher | None = None,
        parse: TitleParser = parse_title,
    ) -> None:
        self._client = client
        self._store = store
        self._checkpoints = checkpoints
        self._matcher = matcher or SetMatcher()
        self._parse = parse
        self._stop_requested = asyncio.Event()
        self._running = False
        self._current_set: CanonicalSet | None = None
        self._stats: ImportStats | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, session_factory: async_sessionmaker[AsyncSession]
    ) -> "ReconciliationOrchestrator":
        """Wire the production collaborators from settings."""
        return cls(
            client=CatalogClient.from_settings(settings),
            store=SqlCanonicalStore(session_factory),
            checkpoints=build_checkpoint_store(settings, session_factory),
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def current_set(self) -> CanonicalSet | None:
        """Set being processed right now, None between runs."""
        return self._current_set

    @property
    def stats(self) -> ImportStats | None:
        """Live stats of the current run, or final stats of the last one."""
        return self._stats

    @property
    def checkpoints(self) -> CheckpointStore:
        return self._checkpoints

    def ensure_credentials(self) -> None:
        """Raise AuthError if the provider cannot be reached with credentials."""
        self._client.ensure_credentials()

    def request_stop(self) -> None:
        """
        Ask the running import to stop.

        The set in progress finishes, its checkpoint is saved, then run()
        returns with completed=False.
        """
        if self._running:
            logger.info("Stop requested; finishing current set")
        self._stop_requested.set()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def run(self, options: ImportOptions | None = None) -> ImportStats:
        """
        Reconcile the external catalog into the canonical store.

        Args:
            options: Resume override, per-run set limit and dry-run flag

        Returns:
            ImportStats. Totals include progress carried over from a
            resumed checkpoint.

        Raises:
            AuthError: Credentials missing or rejected (fatal)
            RuntimeError: If a run is already active on this instance
        """
        if self._running:
            raise RuntimeError("Reconciliation run already in progress")

        options = options or ImportOptions()
        self._running = True
        self._stop_requested.clear()
        try:
            return await self._run(options)
        finally:
            self._running = False
            self._current_set = None

    async def _run(self, options: ImportOptions) -> ImportStats:
        self._client.ensure_credentials()

        checkpoint = await self._checkpoints.load()
        if (
            options.resume_from_index is not None
            and options.resume_from_index != checkpoint.cursor_set_index
        ):
            logger.info(
                "Overriding checkpoint cursor %d with resume index %d",
                checkpoint.cursor_set_index,
                options.resume_from_index,
            )
            checkpoint = ImportCheckpoint(cursor_set_index=options.resume_from_index)

        sets = await self._store.list_sets()
        stats = ImportStats.from_checkpoint(checkpoint)
        self._stats = stats
        retries_before = self._client.retry_count

        start = checkpoint.cursor_set_index
        if start > 0:
            logger.info("Resuming at set %d/%d", start + 1, len(sets))
        else:
            logger.info("Starting reconciliation of %d sets", len(sets))
        if options.dry_run:
            logger.info("Dry run: no cards will be inserted and no checkpoint saved")

        planned_keys: set[tuple[int, str, str]] = set()
        processed_this_run = 0

        for index in range(start, len(sets)):
            if self._stop_requested.is_set():
                logger.info("Stopping before set %d/%d", index + 1, len(sets))
                break
            if options.max_sets is not None and processed_this_run >= options.max_sets:
                logger.info("Reached limit of %d sets for this run", options.max_sets)
                break

            canonical_set = sets[index]
            self._current_set = canonical_set
            logger.info("[%d/%d] Processing %r", index + 1, len(sets), canonical_set.name)

            set_error = await self._process_set(canonical_set, stats, options, planned_keys)
            processed_this_run += 1
            stats.sets_processed += 1

            checkpoint = ImportCheckpoint(
                cursor_set_index=index + 1,
                total_cards_added=stats.cards_added,
                total_sets_processed=stats.sets_processed,
                total_cards_skipped=stats.cards_skipped,
                total_unmatched=stats.unmatched_count,
                last_error=set_error or checkpoint.last_error,
                updated_at=utcnow(),
            )
            if not options.dry_run:
                await self._checkpoints.save(checkpoint)

        self._current_set = None
        stats.retries = self._client.retry_count - retries_before

        if checkpoint.cursor_set_index >= len(sets):
            stats.completed = True
            if not options.dry_run:
                await self._checkpoints.clear()
            logger.info("Reconciliation complete: %s", stats.summary())
        else:
            logger.info(
                "Reconciliation paused at set %d/%d: %s",
                checkpoint.cursor_set_index + 1,
                len(sets),
                stats.summary(),
            )

        return stats

    async def _process_set(
        self,
        canonical_set: CanonicalSet,
        stats: ImportStats,
        options: ImportOptions,
        planned_keys: set[tuple[int, str, str]],
    ) -> str | None:
        """
        Import one set's listings.

        Returns:
            Failure message if the set's fetch failed, else None
        """
        query = build_query(canonical_set)
        try:
            listings = await self._client.fetch(query)
        except NetworkError as e:
            failure = e.to_failure(set_id=canonical_set.id, set_name=canonical_set.name)
            stats.errors.append(failure)
            logger.error("Skipping set %r: %s", canonical_set.name, failure.message)
            return failure.message

        added_before = stats.cards_added
        planned_before = len(stats.planned_cards)
        for listing in listings:
            await self._process_listing(listing, canonical_set, stats, options, planned_keys)

        if options.dry_run:
            logger.info(
                "Would add %d cards to %r",
                len(stats.planned_cards) - planned_before,
                canonical_set.name,
            )
        else:
            logger.info(
                "Added %d cards to %r (%d listings)",
                stats.cards_added - added_before,
                canonical_set.name,
                len(listings),
            )
        return None

    async def _process_listing(
        self,
        listing: ExternalListing,
        canonical_set: CanonicalSet,
        stats: ImportStats,
        options: ImportOptions,
        planned_keys: set[tuple[int, str, str]],
    ) -> None:
        if not is_card_listing(listing):
            stats.non_card_listings += 1
            return

        match = self._matcher.match(listing, [canonical_set])
        if match is None:
            stats.unmatched_count += 1
            error = NoMatchError(
                f"Listing {listing.title!r} does not match set {canonical_set.name!r}",
                detail=f"category {listing.category_label!r}",
            )
            stats.errors.append(
                error.to_failure(
                    set_id=canonical_set.id,
                    set_name=canonical_set.name,
                    external_id=listing.external_id,
                )
            )
            logger.debug("Unmatched listing %s: %s", listing.external_id, error.message)
            return

        logger.debug(
            "Listing %s matched %r via %s (%.2f)",
            listing.external_id,
            canonical_set.name,
            match.strategy.value,
            match.confidence,
        )

        identity = self._parse(listing.title)
        if not identity.card_number:
            error = ParseError(f"No card number in title {listing.title!r}")
            stats.errors.append(
                error.to_failure(
                    set_id=canonical_set.id,
                    set_name=canonical_set.name,
                    external_id=listing.external_id,
                )
            )
            logger.debug("Unparseable listing %s: %s", listing.external_id, error.message)
            return

        key = (canonical_set.id, identity.card_number, identity.card_name)
        if key in planned_keys or await self._store.card_exists(*key):
            stats.cards_skipped += 1
            return

        price_hint = listing.price_tiers.best_hint()

        if options.dry_run:
            planned_keys.add(key)
            stats.planned_cards.append(
                PlannedCard(
                    set_id=canonical_set.id,
                    card_number=identity.card_number,
                    card_name=identity.card_name,
                    estimated_value=price_hint,
                    image_url=listing.image_url,
                )
            )
            logger.info(
                "[dry run] Would add %r #%s to %r",
                identity.card_name,
                identity.card_number,
                canonical_set.name,
            )
            return

        try:
            await self._store.insert_card(
                canonical_set.id,
                identity.card_number,
                identity.card_name,
                price_hint=price_hint,
                image_hint=listing.image_url,
            )
        except DuplicateError:
            stats.cards_skipped += 1
            return

        stats.cards_added += 1
        logger.debug(
            "Added %r #%s to %r", identity.card_name, identity.card_number, canonical_set.name
        )
