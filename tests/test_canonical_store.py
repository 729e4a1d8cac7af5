"""Tests for the SQL-backed canonical store."""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.db.operations import create_set, get_cards_by_set
from catalogsync.models.failure import DuplicateError
from catalogsync.services.canonical_store import SqlCanonicalStore


@pytest.fixture
async def store(session_factory: async_sessionmaker[AsyncSession]) -> SqlCanonicalStore:
    async with session_factory() as session:
        await create_set(session, "1992 Marvel Masterpieces")
        await create_set(session, "1993 SkyBox Marvel Masterpieces")
        await session.commit()
    return SqlCanonicalStore(session_factory)


class TestSqlCanonicalStore:
    async def test_list_sets(self, store: SqlCanonicalStore) -> None:
        sets = await store.list_sets()

        assert [s.name for s in sets] == [
            "1992 Marvel Masterpieces",
            "1993 SkyBox Marvel Masterpieces",
        ]
        assert sets[1].year == 1993

    async def test_insert_and_exists(self, store: SqlCanonicalStore) -> None:
        """Inserted cards are visible to later sessions."""
        set_id = (await store.list_sets())[0].id
        assert not await store.card_exists(set_id, "64", "Colossus")

        card = await store.insert_card(
            set_id, "64", "Colossus", price_hint=Decimal("4.50"), image_hint="https://img/64.jpg"
        )

        assert card.name == "Colossus"
        assert card.estimated_value == Decimal("4.50")
        assert await store.card_exists(set_id, "64", "Colossus")

    async def test_duplicate_rejected(
        self, store: SqlCanonicalStore, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A second insert of the same identity fails and leaves one row."""
        set_id = (await store.list_sets())[0].id
        await store.insert_card(set_id, "64", "Colossus")

        with pytest.raises(DuplicateError):
            await store.insert_card(set_id, "64", "Colossus")

        async with session_factory() as session:
            assert len(await get_cards_by_set(session, set_id)) == 1
