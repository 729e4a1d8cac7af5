"""
Canonical catalog store.

The read/insert boundary the reconciliation engine uses to reach the
internal catalog. The engine never updates or deletes existing cards.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.db import operations
from catalogsync.models.catalog import CanonicalCard, CanonicalSet


class CanonicalStore(Protocol):
    """Interface to the internal catalog."""

    async def list_sets(self) -> list[CanonicalSet]: ...

    async def card_exists(self, set_id: int, card_number: str, card_name: str) -> bool: ...

    async def insert_card(
        self,
        set_id: int,
        card_number: str,
        card_name: str,
        price_hint: Decimal | None = None,
        image_hint: str | None = None,
    ) -> CanonicalCard: ...


class SqlCanonicalStore:
    """
    CanonicalStore over async SQLAlchemy.

    Each call runs in its own short session so a failed insert never leaves
    a broken transaction behind for the next listing.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_sets(self) -> list[CanonicalSet]:
        async with self._session_factory() as session:
            return [operations.set_to_model(s) for s in await operations.list_sets(session)]

    async def card_exists(self, set_id: int, card_number: str, card_name: str) -> bool:
        async with self._session_factory() as session:
            card = await operations.get_card(session, set_id, card_number, card_name)
            return card is not None

    async def insert_card(
        self,
        set_id: int,
        card_number: str,
        card_name: str,
        price_hint: Decimal | None = None,
        image_hint: str | None = None,
    ) -> CanonicalCard:
        """
        Insert a new card.

        Raises:
            DuplicateError: If the card already exists
        """
        async with self._session_factory() as session:
            card = await operations.insert_card(
                session,
                set_id,
                card_number,
                card_name,
                estimated_value=price_hint,
                front_image_url=image_hint,
            )
            await session.commit()
            return operations.card_to_model(card)
