"""
Import admin endpoints.

Start, stop and inspect the catalog reconciliation run from HTTP. Only one
run may be active per process; the run executes as a background task and
the checkpoint makes it safe to stop at any time.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from catalogsync.config import settings
from catalogsync.db.database import async_session_factory
from catalogsync.models.checkpoint import ImportCheckpoint, ImportOptions, ImportStats
from catalogsync.models.failure import AuthError, ImportFailure
from catalogsync.services.reconciliation import ReconciliationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])


class ImportStartRequest(BaseModel):
    """Request model for starting a reconciliation run."""

    resume_from_index: int | None = Field(
        default=None,
        ge=0,
        description="Start at this set index instead of the stored checkpoint",
    )
    max_sets: int | None = Field(
        default=None,
        ge=1,
        description="Process at most this many sets in this run",
    )
    dry_run: bool = Field(
        default=False,
        description="Match and parse listings without inserting cards",
    )


class ImportStatsResponse(BaseModel):
    """Stats of the current or last run."""

    sets_processed: int
    cards_added: int
    cards_skipped: int
    unmatched_count: int
    non_card_listings: int
    retries: int
    planned_cards: int
    completed: bool
    errors: list[ImportFailure] = Field(default_factory=list)

    @classmethod
    def from_stats(cls, stats: ImportStats) -> "ImportStatsResponse":
        return cls(
            sets_processed=stats.sets_processed,
            cards_added=stats.cards_added,
            cards_skipped=stats.cards_skipped,
            unmatched_count=stats.unmatched_count,
            non_card_listings=stats.non_card_listings,
            retries=stats.retries,
            planned_cards=len(stats.planned_cards),
            completed=stats.completed,
            errors=list(stats.errors),
        )


class CheckpointResponse(BaseModel):
    """Stored checkpoint for the import job."""

    cursor_set_index: int
    total_cards_added: int
    total_sets_processed: int
    total_cards_skipped: int
    total_unmatched: int
    last_error: str | None = None
    updated_at: datetime

    @classmethod
    def from_checkpoint(cls, checkpoint: ImportCheckpoint) -> "CheckpointResponse":
        return cls(
            cursor_set_index=checkpoint.cursor_set_index,
            total_cards_added=checkpoint.total_cards_added,
            total_sets_processed=checkpoint.total_sets_processed,
            total_cards_skipped=checkpoint.total_cards_skipped,
            total_unmatched=checkpoint.total_unmatched,
            last_error=checkpoint.last_error,
            updated_at=checkpoint.updated_at,
        )


class ImportStatusResponse(BaseModel):
    """Response model for import status."""

    running: bool
    stop_requested: bool = False
    current_set: str | None = None
    stats: ImportStatsResponse | None = None
    checkpoint: CheckpointResponse
    last_error: str | None = Field(
        default=None,
        description="Error that aborted the last run, if any",
    )


class ImportStartResponse(BaseModel):
    """Response model for a started run."""

    started: bool
    options: ImportStartRequest


class ImportStopResponse(BaseModel):
    """Response model for a stop request."""

    stopping: bool
    message: str


class ImportAlreadyRunningError(Exception):
    """A reconciliation run is already active."""


class ImportJobManager:
    """
    Owns the single reconciliation run of this process.

    The orchestrator is created on first use and reused across runs, so its
    rate limiter pacing carries over between runs.
    """

    def __init__(self, orchestrator_factory: Callable[[], ReconciliationOrchestrator]) -> None:
        self._orchestrator_factory = orchestrator_factory
        self._orchestrator: ReconciliationOrchestrator | None = None
        self._task: asyncio.Task[ImportStats] | None = None
        self._last_error: str | None = None

    @property
    def orchestrator(self) -> ReconciliationOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = self._orchestrator_factory()
        return self._orchestrator

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, options: ImportOptions) -> None:
        """
        Launch a run in the background.

        Raises:
            ImportAlreadyRunningError: If a run is active
            AuthError: If provider credentials are missing
        """
        if self.is_running:
            raise ImportAlreadyRunningError("Catalog import is already running")

        orchestrator = self.orchestrator
        orchestrator.ensure_credentials()

        self._last_error = None
        self._task = asyncio.create_task(self._run(orchestrator, options))
        self._task.add_done_callback(_consume_task_exception)
        logger.info("Started catalog import (dry_run=%s)", options.dry_run)

    async def _run(
        self, orchestrator: ReconciliationOrchestrator, options: ImportOptions
    ) -> ImportStats:
        try:
            return await orchestrator.run(options)
        except AuthError as e:
            self._last_error = e.to_failure().message
            logger.error("Catalog import aborted: %s", self._last_error)
            raise
        except Exception as e:
            self._last_error = str(e)
            logger.exception("Catalog import failed")
            raise

    def stop(self) -> bool:
        """Request a graceful stop. Returns False if nothing is running."""
        if not self.is_running:
            return False
        self.orchestrator.request_stop()
        return True

    async def wait(self) -> ImportStats | None:
        """Wait for the active run to finish. Returns its stats, None on failure."""
        if self._task is None:
            return None
        try:
            return await self._task
        except Exception:
            return None

    async def status(self) -> ImportStatusResponse:
        orchestrator = self.orchestrator
        checkpoint = await orchestrator.checkpoints.load()
        current = orchestrator.current_set
        stats = orchestrator.stats
        return ImportStatusResponse(
            running=self.is_running,
            stop_requested=self.is_running and orchestrator.stop_requested,
            current_set=current.name if current else None,
            stats=ImportStatsResponse.from_stats(stats) if stats else None,
            checkpoint=CheckpointResponse.from_checkpoint(checkpoint),
            last_error=self._last_error,
        )

    async def aclose(self) -> None:
        """Stop any active run and release the provider client."""
        if self.is_running:
            self.stop()
            await self.wait()
        if self._orchestrator is not None:
            await self._orchestrator.aclose()


def _consume_task_exception(task: asyncio.Task[ImportStats]) -> None:
    # Failures are already logged and kept in last_error
    if not task.cancelled():
        task.exception()


_manager: ImportJobManager | None = None


def get_import_manager() -> ImportJobManager:
    """Dependency that provides the process-wide import manager."""
    global _manager
    if _manager is None:
        _manager = ImportJobManager(
            lambda: ReconciliationOrchestrator.from_settings(settings, async_session_factory)
        )
    return _manager


async def shutdown_import_manager() -> None:
    """Release the import manager at application shutdown."""
    global _manager
    if _manager is not None:
        await _manager.aclose()
        _manager = None


ManagerDep = Annotated[ImportJobManager, Depends(get_import_manager)]


@router.post("/start", response_model=ImportStartResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_import(
    manager: ManagerDep,
    request: ImportStartRequest | None = None,
) -> ImportStartResponse:
    """
    Start a reconciliation run in the background.

    Returns 409 if a run is already active, 503 if provider credentials
    are not configured.
    """
    request = request or ImportStartRequest()
    try:
        manager.start(
            ImportOptions(
                resume_from_index=request.resume_from_index,
                max_sets=request.max_sets,
                dry_run=request.dry_run,
            )
        )
    except ImportAlreadyRunningError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.to_failure().message,
        ) from e

    return ImportStartResponse(started=True, options=request)


@router.post("/stop", response_model=ImportStopResponse)
async def stop_import(manager: ManagerDep) -> ImportStopResponse:
    """Ask the active run to stop after its current set."""
    if manager.stop():
        return ImportStopResponse(
            stopping=True,
            message="Import will stop after the current set",
        )
    return ImportStopResponse(stopping=False, message="No import is running")


@router.get("/status", response_model=ImportStatusResponse)
async def import_status(manager: ManagerDep) -> ImportStatusResponse:
    """Current run state, live stats and the stored checkpoint."""
    return await manager.status()
