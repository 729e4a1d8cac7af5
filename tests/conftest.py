import asyncio
from collections.abc import Callable
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalogsync.db.database import build_session_factory
from catalogsync.models.catalog import CanonicalCard, CanonicalSet, ExternalListing, PriceTiers
from catalogsync.models.checkpoint import ImportCheckpoint
from catalogsync.models.db import Base
from catalogsync.models.failure import AuthError, DuplicateError


class FakeCatalogClient:
    """In-memory stand-in for CatalogClient keyed by query text."""

    def __init__(self) -> None:
        self.responses: dict[str, list[ExternalListing] | Exception] = {}
        self.queries: list[str] = []
        self.retry_count = 0
        self.retries_per_fetch = 0
        self.has_credentials = True
        self.closed = False
        self.gate: asyncio.Event | None = None
        self.on_fetch: Callable[[str], None] | None = None

    def ensure_credentials(self) -> None:
        if not self.has_credentials:
            raise AuthError("Catalog provider API token is not configured")

    async def fetch(self, query: str) -> list[ExternalListing]:
        self.queries.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if self.on_fetch is not None:
            self.on_fetch(query)
        self.retry_count += self.retries_per_fetch
        outcome = self.responses.get(query, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    async def aclose(self) -> None:
        self.closed = True


class InMemoryCanonicalStore:
    """CanonicalStore backed by a dict, enforcing identity uniqueness."""

    def __init__(self, sets: list[CanonicalSet] | None = None) -> None:
        self.sets = list(sets or [])
        self.cards: dict[tuple[int, str, str], CanonicalCard] = {}
        self.insert_calls = 0

    async def list_sets(self) -> list[CanonicalSet]:
        return list(self.sets)

    async def card_exists(self, set_id: int, card_number: str, card_name: str) -> bool:
        return (set_id, card_number, card_name) in self.cards

    async def insert_card(
        self,
        set_id: int,
        card_number: str,
        card_name: str,
        price_hint: Decimal | None = None,
        image_hint: str | None = None,
    ) -> CanonicalCard:
        self.insert_calls += 1
        key = (set_id, card_number, card_name)
        if key in self.cards:
            raise DuplicateError(f"{card_name} #{card_number} already exists")
        card = CanonicalCard(
            id=len(self.cards) + 1,
            set_id=set_id,
            card_number=card_number,
            name=card_name,
            estimated_value=price_hint,
            front_image_url=image_hint,
        )
        self.cards[key] = card
        return card


class InMemoryCheckpointStore:
    """CheckpointStore that remembers every save."""

    def __init__(self, checkpoint: ImportCheckpoint | None = None) -> None:
        self.checkpoint = checkpoint
        self.saved: list[ImportCheckpoint] = []
        self.clear_calls = 0

    async def load(self) -> ImportCheckpoint:
        return self.checkpoint or ImportCheckpoint()

    async def save(self, checkpoint: ImportCheckpoint) -> None:
        self.checkpoint = checkpoint
        self.saved.append(checkpoint)

    async def clear(self) -> None:
        self.checkpoint = None
        self.clear_calls += 1


def make_listing(
    external_id: str,
    title: str,
    label: str,
    loose: int | None = None,
    image_url: str | None = None,
) -> ExternalListing:
    return ExternalListing(
        external_id=external_id,
        title=title,
        category_label=label,
        price_tiers=PriceTiers(loose=loose),
        image_url=image_url,
    )


@pytest.fixture
def masterpieces_1992() -> CanonicalSet:
    return CanonicalSet(
        id=1, name="1992 Marvel Masterpieces", year=1992, slug="1992-marvel-masterpieces"
    )


@pytest.fixture
def masterpieces_1993() -> CanonicalSet:
    return CanonicalSet(
        id=2,
        name="1993 SkyBox Marvel Masterpieces",
        year=1993,
        slug="1993-skybox-marvel-masterpieces",
    )


@pytest.fixture
def fake_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def memory_store(
    masterpieces_1992: CanonicalSet, masterpieces_1993: CanonicalSet
) -> InMemoryCanonicalStore:
    return InMemoryCanonicalStore([masterpieces_1992, masterpieces_1993])


@pytest.fixture
def memory_checkpoints() -> InMemoryCheckpointStore:
    return InMemoryCheckpointStore()


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine shared by every session in a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(async_engine)


@pytest.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def listing_factory() -> Callable[..., ExternalListing]:
    """Build ExternalListing objects with terse arguments."""
    return make_listing
