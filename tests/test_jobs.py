"""Tests for the reconciliation job entry point."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from catalogsync.jobs.reconcile_catalog import main, parse_options, run_reconciliation
from catalogsync.models.checkpoint import ImportOptions, ImportStats
from catalogsync.models.failure import AuthError, FailureKind, ImportFailure


@pytest.fixture
def finished_stats() -> ImportStats:
    return ImportStats(
        sets_processed=2,
        cards_added=5,
        cards_skipped=1,
        errors=[
            ImportFailure(
                kind=FailureKind.NETWORK,
                message="Catalog provider error (HTTP 500)",
                set_id=1,
                set_name="1992 Marvel Masterpieces",
            )
        ],
        completed=True,
    )


class TestParseOptions:
    def test_defaults(self) -> None:
        assert parse_options([]) == ImportOptions()

    def test_all_flags(self) -> None:
        options = parse_options(["--resume-from", "3", "--max-sets", "2", "--dry-run"])

        assert options == ImportOptions(resume_from_index=3, max_sets=2, dry_run=True)

    @pytest.mark.parametrize(
        "argv",
        [["--max-sets", "0"], ["--resume-from", "-1"], ["--max-sets", "many"]],
    )
    def test_invalid_values(self, argv: list[str]) -> None:
        with pytest.raises(SystemExit):
            parse_options(argv)


class TestRunReconciliation:
    @pytest.mark.asyncio
    async def test_runs_and_closes_orchestrator(self, finished_stats: ImportStats) -> None:
        """The job initializes the database, runs once and releases the client."""
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=finished_stats)
        orchestrator.aclose = AsyncMock()
        options = ImportOptions(max_sets=1)

        with (
            patch("catalogsync.jobs.reconcile_catalog.init_db", new_callable=AsyncMock) as init_db,
            patch(
                "catalogsync.jobs.reconcile_catalog.ReconciliationOrchestrator.from_settings",
                return_value=orchestrator,
            ),
            patch("catalogsync.jobs.reconcile_catalog._install_signal_handlers"),
        ):
            result = await run_reconciliation(options)

        assert result is finished_stats
        init_db.assert_awaited_once()
        orchestrator.run.assert_awaited_once_with(options)
        orchestrator.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closes_orchestrator_on_failure(self) -> None:
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(side_effect=AuthError("rejected"))
        orchestrator.aclose = AsyncMock()

        with (
            patch("catalogsync.jobs.reconcile_catalog.init_db", new_callable=AsyncMock),
            patch(
                "catalogsync.jobs.reconcile_catalog.ReconciliationOrchestrator.from_settings",
                return_value=orchestrator,
            ),
            patch("catalogsync.jobs.reconcile_catalog._install_signal_handlers"),
            pytest.raises(AuthError),
        ):
            await run_reconciliation()

        orchestrator.aclose.assert_awaited_once()


class TestMain:
    def test_success_exit_code(self, finished_stats: ImportStats) -> None:
        with patch(
            "catalogsync.jobs.reconcile_catalog.run_reconciliation",
            new_callable=AsyncMock,
            return_value=finished_stats,
        ) as run:
            assert main(["--dry-run"]) == 0

        run.assert_awaited_once_with(ImportOptions(dry_run=True))

    def test_auth_failure_exit_code(self) -> None:
        """Missing credentials abort with a non-zero exit code."""
        with patch(
            "catalogsync.jobs.reconcile_catalog.run_reconciliation",
            new_callable=AsyncMock,
            side_effect=AuthError("Catalog provider API token is not configured"),
        ):
            assert main([]) == 2
