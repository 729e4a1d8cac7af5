"""
Import checkpoint persistence.

Two interchangeable backends:
- DatabaseCheckpointStore: one row per job name (default)
- FileCheckpointStore: a JSON file written atomically

load() on a fresh job returns a zero checkpoint. save() is called once per
processed set. clear() is called only when every set has been processed.
"""

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.config import Settings
from catalogsync.db import operations
from catalogsync.models.checkpoint import ImportCheckpoint

logger = logging.getLogger(__name__)


class CheckpointStore(Protocol):
    """Durable storage for one job's ImportCheckpoint."""

    async def load(self) -> ImportCheckpoint: ...

    async def save(self, checkpoint: ImportCheckpoint) -> None: ...

    async def clear(self) -> None: ...


class DatabaseCheckpointStore:
    """Checkpoint stored as a row in import_checkpoints."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], job_name: str) -> None:
        self._session_factory = session_factory
        self.job_name = job_name

    async def load(self) -> ImportCheckpoint:
        async with self._session_factory() as session:
            row = await operations.get_checkpoint(session, self.job_name)
            if row is None:
                return ImportCheckpoint()
            return operations.checkpoint_to_model(row)

    async def save(self, checkpoint: ImportCheckpoint) -> None:
        async with self._session_factory() as session:
            await operations.upsert_checkpoint(session, self.job_name, checkpoint)
            await session.commit()

    async def clear(self) -> None:
        async with self._session_factory() as session:
            deleted = await operations.delete_checkpoint(session, self.job_name)
            await session.commit()
        if deleted:
            logger.info("Cleared checkpoint for job %s", self.job_name)


def _checkpoint_to_dict(checkpoint: ImportCheckpoint) -> dict[str, Any]:
    return {
        "cursor_set_index": checkpoint.cursor_set_index,
        "total_cards_added": checkpoint.total_cards_added,
        "total_sets_processed": checkpoint.total_sets_processed,
        "total_cards_skipped": checkpoint.total_cards_skipped,
        "total_unmatched": checkpoint.total_unmatched,
        "last_error": checkpoint.last_error,
        "updated_at": checkpoint.updated_at.isoformat(),
    }


def _checkpoint_from_dict(data: dict[str, Any]) -> ImportCheckpoint:
    checkpoint = ImportCheckpoint(
        cursor_set_index=int(data.get("cursor_set_index", 0)),
        total_cards_added=int(data.get("total_cards_added", 0)),
        total_sets_processed=int(data.get("total_sets_processed", 0)),
        total_cards_skipped=int(data.get("total_cards_skipped", 0)),
        total_unmatched=int(data.get("total_unmatched", 0)),
        last_error=data.get("last_error"),
    )
    if data.get("updated_at"):
        checkpoint.updated_at = datetime.fromisoformat(data["updated_at"])
    return checkpoint


class FileCheckpointStore:
    """
    Checkpoint stored as a JSON file.

    Writes go to a temporary file in the same directory followed by
    os.replace, so a crash mid-write never leaves a truncated checkpoint.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    async def load(self) -> ImportCheckpoint:
        return await asyncio.to_thread(self._read)

    async def save(self, checkpoint: ImportCheckpoint) -> None:
        await asyncio.to_thread(self._write, _checkpoint_to_dict(checkpoint))

    async def clear(self) -> None:
        if await asyncio.to_thread(self._remove):
            logger.info("Cleared checkpoint file %s", self.path)

    def _read(self) -> ImportCheckpoint:
        if not self.path.exists():
            return ImportCheckpoint()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return _checkpoint_from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            # Restarting is safe: inserts are idempotent
            logger.error("Unreadable checkpoint %s, starting fresh: %s", self.path, e)
            return ImportCheckpoint()

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


def build_checkpoint_store(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> CheckpointStore:
    """Checkpoint store selected by settings.checkpoint_backend."""
    if settings.checkpoint_backend == "file":
        return FileCheckpointStore(settings.checkpoint_path)
    return DatabaseCheckpointStore(session_factory, settings.import_job_name)
