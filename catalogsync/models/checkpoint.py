from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from catalogsync.models.failure import ImportFailure


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class ImportCheckpoint:
    """
    Durable cursor recording reconciliation progress.

    Attributes:
        cursor_set_index: Index of the next canonical set to process.
            Only ever increases within a job.
        total_cards_added: Cards inserted since the job started
        total_sets_processed: Sets finished since the job started
        total_cards_skipped: Listings skipped because the card already existed
        total_unmatched: Listings that matched no set
        last_error: Most recent set-level failure message
        updated_at: Last time the checkpoint was saved
    """

    cursor_set_index: int = 0
    total_cards_added: int = 0
    total_sets_processed: int = 0
    total_cards_skipped: int = 0
    total_unmatched: int = 0
    last_error: str | None = None
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_fresh(self) -> bool:
        """True if no set has been processed yet."""
        return self.cursor_set_index == 0 and self.total_sets_processed == 0


@dataclass
class ImportOptions:
    """
    Operator-supplied configuration for one run.

    Attributes:
        resume_from_index: Start at this set index instead of the checkpoint cursor
        max_sets: Process at most this many sets in this run
        dry_run: Run matching and parsing but never insert cards
    """

    resume_from_index: int | None = None
    max_sets: int | None = None
    dry_run: bool = False


@dataclass(frozen=True)
class PlannedCard:
    """A card a dry run would have inserted."""

    set_id: int
    card_number: str
    card_name: str
    estimated_value: Decimal | None = None
    image_url: str | None = None


@dataclass
class ImportStats:
    """Summary of a reconciliation run."""

    sets_processed: int = 0
    cards_added: int = 0
    cards_skipped: int = 0
    unmatched_count: int = 0
    non_card_listings: int = 0
    retries: int = 0
    errors: list[ImportFailure] = field(default_factory=list)
    planned_cards: list[PlannedCard] = field(default_factory=list)
    completed: bool = False

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @classmethod
    def from_checkpoint(cls, checkpoint: ImportCheckpoint) -> "ImportStats":
        """Seed running totals from a resumed checkpoint."""
        return cls(
            sets_processed=checkpoint.total_sets_processed,
            cards_added=checkpoint.total_cards_added,
            cards_skipped=checkpoint.total_cards_skipped,
            unmatched_count=checkpoint.total_unmatched,
        )

    def summary(self) -> str:
        return (
            f"sets processed={self.sets_processed}, cards added={self.cards_added}, "
            f"cards skipped={self.cards_skipped}, unmatched={self.unmatched_count}, "
            f"errors={self.error_count}"
        )
