"""Tests for engine and session setup."""

from pathlib import Path

from sqlalchemy import inspect

from catalogsync.db.database import build_engine, build_session_factory, init_db
from catalogsync.db.operations import create_set, list_sets


class TestInitDb:
    async def test_creates_catalog_tables(self, tmp_path: Path) -> None:
        """init_db creates set, card and checkpoint tables on the given engine."""
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")

        await init_db(engine)

        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        await engine.dispose()

        assert {"card_sets", "cards", "import_checkpoints"} <= set(tables)

    async def test_idempotent(self, tmp_path: Path) -> None:
        """Running init_db twice keeps existing rows."""
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
        session_factory = build_session_factory(engine)
        await init_db(engine)
        async with session_factory() as session:
            await create_set(session, "1992 Marvel Masterpieces")
            await session.commit()

        await init_db(engine)

        async with session_factory() as session:
            sets = await list_sets(session)
        await engine.dispose()

        assert [s.name for s in sets] == ["1992 Marvel Masterpieces"]
