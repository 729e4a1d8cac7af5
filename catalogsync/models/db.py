"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardSetDB(Base):
    """
    A canonical card set.

    Owned by catalog management. The reconciliation engine only reads sets,
    except for explicit operator-requested subset creation.
    """

    __tablename__ = "card_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    year: Mapped[int] = mapped_column(Integer)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    parent_set_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("card_sets.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    cards: Mapped[list["CardDB"]] = relationship(back_populates="card_set")

    def __repr__(self) -> str:
        return f"<CardSetDB(id={self.id}, slug={self.slug})>"


class CardDB(Base):
    """
    A canonical card.

    Unique per (set, number, name). Never updated by the import engine.
    """

    __tablename__ = "cards"
    __table_args__ = (
        UniqueConstraint("set_id", "card_number", "name", name="uq_card_set_number_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    set_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("card_sets.id", ondelete="CASCADE"), index=True
    )
    card_number: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255))
    estimated_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    front_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    card_set: Mapped["CardSetDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<CardDB(set_id={self.set_id}, number={self.card_number}, name={self.name})>"


class ImportCheckpointDB(Base):
    """
    Persisted progress of a reconciliation job.

    One row per job name. Deleted when the job completes.
    """

    __tablename__ = "import_checkpoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    cursor_set_index: Mapped[int] = mapped_column(Integer, default=0)
    total_cards_added: Mapped[int] = mapped_column(Integer, default=0)
    total_sets_processed: Mapped[int] = mapped_column(Integer, default=0)
    total_cards_skipped: Mapped[int] = mapped_column(Integer, default=0)
    total_unmatched: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<ImportCheckpointDB(job={self.job_name}, cursor={self.cursor_set_index})>"
