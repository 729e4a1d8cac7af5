"""
Database CRUD operations.

Provides async functions for reading card sets, inserting cards
(insert-if-absent only) and persisting import checkpoints.
"""

import re
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalogsync.models.catalog import CanonicalCard, CanonicalSet
from catalogsync.models.checkpoint import ImportCheckpoint, utcnow
from catalogsync.models.db import CardDB, CardSetDB, ImportCheckpointDB
from catalogsync.models.failure import DuplicateError

YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")


def generate_slug(name: str) -> str:
    """
    URL-safe slug from a set name.

    "1992 Marvel Masterpieces [What If]" -> "1992-marvel-masterpieces-what-if"
    """
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-")


def extract_year(name: str, default: int | None = None) -> int:
    """First 19xx/20xx year in a set name, else default (current year)."""
    match = YEAR_PATTERN.search(name)
    if match:
        return int(match.group(0))
    return default if default is not None else utcnow().year


# --- Card Set Operations ---


async def list_sets(session: AsyncSession) -> list[CardSetDB]:
    """All card sets, oldest first (stable order for checkpoint cursors)."""
    result = await session.execute(select(CardSetDB).order_by(CardSetDB.id))
    return list(result.scalars().all())


async def get_set_by_slug(session: AsyncSession, slug: str) -> CardSetDB | None:
    """Get a card set by its unique slug."""
    result = await session.execute(select(CardSetDB).where(CardSetDB.slug == slug))
    return result.scalar_one_or_none()


async def create_set(
    session: AsyncSession,
    name: str,
    year: int | None = None,
    parent_set_id: int | None = None,
) -> CardSetDB:
    """
    Create a card set.

    Raises IntegrityError if the slug already exists.
    """
    card_set = CardSetDB(
        name=name,
        year=year if year is not None else extract_year(name),
        slug=generate_slug(name),
        parent_set_id=parent_set_id,
    )
    session.add(card_set)
    await session.flush()
    return card_set


async def create_subset_set(
    session: AsyncSession, parent: CardSetDB, subset_name: str
) -> tuple[CardSetDB, bool]:
    """
    Create a subset of an existing set (e.g. "Gold Refractor").

    Returns:
        Tuple of (set, created). Returns the existing set with created=False
        when the combined slug is already taken.
    """
    name = f"{parent.name} {subset_name.strip()}"
    existing = await get_set_by_slug(session, generate_slug(name))
    if existing:
        return existing, False

    subset = await create_set(session, name, year=parent.year, parent_set_id=parent.id)
    return subset, True


def set_to_model(card_set: CardSetDB) -> CanonicalSet:
    """Convert a database set to a domain model."""
    return CanonicalSet(id=card_set.id, name=card_set.name, year=card_set.year, slug=card_set.slug)


# --- Card Operations ---


async def get_card(
    session: AsyncSession, set_id: int, card_number: str, card_name: str
) -> CardDB | None:
    """Get a card by its identity within a set."""
    result = await session.execute(
        select(CardDB).where(
            CardDB.set_id == set_id,
            CardDB.card_number == card_number,
            CardDB.name == card_name,
        )
    )
    return result.scalar_one_or_none()


async def insert_card(
    session: AsyncSession,
    set_id: int,
    card_number: str,
    card_name: str,
    estimated_value: Decimal | None = None,
    front_image_url: str | None = None,
) -> CardDB:
    """
    Insert a card if its (set, number, name) identity is new.

    Existing cards are never modified. After a DuplicateError caused by the
    unique constraint the session must be rolled back.

    Raises:
        DuplicateError: If the card already exists
    """
    if await get_card(session, set_id, card_number, card_name):
        raise DuplicateError(f"Card {card_name!r} #{card_number} already exists in set {set_id}")

    card = CardDB(
        set_id=set_id,
        card_number=card_number,
        name=card_name,
        estimated_value=estimated_value,
        front_image_url=front_image_url,
    )
    session.add(card)
    try:
        await session.flush()
    except IntegrityError as e:
        raise DuplicateError(
            f"Card {card_name!r} #{card_number} already exists in set {set_id}"
        ) from e
    return card


async def get_cards_by_set(session: AsyncSession, set_id: int) -> list[CardDB]:
    """All cards in a set, ordered by insertion."""
    result = await session.execute(
        select(CardDB).where(CardDB.set_id == set_id).order_by(CardDB.id)
    )
    return list(result.scalars().all())


def card_to_model(card: CardDB) -> CanonicalCard:
    """Convert a database card to a domain model."""
    return CanonicalCard(
        id=card.id,
        set_id=card.set_id,
        card_number=card.card_number,
        name=card.name,
        estimated_value=card.estimated_value,
        front_image_url=card.front_image_url,
    )


# --- Checkpoint Operations ---


async def get_checkpoint(session: AsyncSession, job_name: str) -> ImportCheckpointDB | None:
    """Get the stored checkpoint row for a job."""
    result = await session.execute(
        select(ImportCheckpointDB).where(ImportCheckpointDB.job_name == job_name)
    )
    return result.scalar_one_or_none()


async def upsert_checkpoint(
    session: AsyncSession, job_name: str, checkpoint: ImportCheckpoint
) -> ImportCheckpointDB:
    """Insert or update a job's checkpoint."""
    row = await get_checkpoint(session, job_name)
    if row is None:
        row = ImportCheckpointDB(job_name=job_name)
        session.add(row)

    row.cursor_set_index = checkpoint.cursor_set_index
    row.total_cards_added = checkpoint.total_cards_added
    row.total_sets_processed = checkpoint.total_sets_processed
    row.total_cards_skipped = checkpoint.total_cards_skipped
    row.total_unmatched = checkpoint.total_unmatched
    row.last_error = checkpoint.last_error
    row.updated_at = checkpoint.updated_at
    await session.flush()
    return row


async def delete_checkpoint(session: AsyncSession, job_name: str) -> bool:
    """
    Delete a job's checkpoint.

    Returns True if a row was deleted.
    """
    result = await session.execute(
        delete(ImportCheckpointDB).where(ImportCheckpointDB.job_name == job_name)
    )
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


def checkpoint_to_model(row: ImportCheckpointDB) -> ImportCheckpoint:
    """Convert a database checkpoint to a domain model."""
    updated_at: datetime = row.updated_at or utcnow()
    return ImportCheckpoint(
        cursor_set_index=row.cursor_set_index,
        total_cards_added=row.total_cards_added,
        total_sets_processed=row.total_sets_processed,
        total_cards_skipped=row.total_cards_skipped,
        total_unmatched=row.total_unmatched,
        last_error=row.last_error,
        updated_at=updated_at,
    )
