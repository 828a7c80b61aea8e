"""
Health-check helpers for liveness and readiness probes.

Liveness:  is the process alive and not deadlocked?  (cheap, no I/O)
Readiness: can it serve traffic?  (MySQL reachable + no pending migrations)
"""

import logging

from client_records.core.config import Settings
from client_records.core.pool import PoolManager
from client_records.migrations import MigrationRunner

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Individual dependency checks
# ---------------------------------------------------------------------------


async def check_database(pool_manager: PoolManager) -> bool:
    """Check MySQL by running SELECT 1. Returns True if ok."""
    try:
        await pool_manager.query("SELECT 1")
        return True
    except Exception:
        logger.warning("Database check failed", exc_info=True)
        return False


async def check_migrations(pool_manager: PoolManager, settings: Settings) -> bool:
    """Verify every migration file is recorded in the ledger."""
    runner = MigrationRunner(
        pool_manager, settings.migrations_path, settings.MIGRATIONS_TABLE
    )
    try:
        pending = await runner.pending()
    except Exception:
        logger.warning("Migration check failed, treating as unhealthy", exc_info=True)
        return False
    if pending:
        logger.warning("Pending migrations: %s", ", ".join(pending))
    return not pending


# ---------------------------------------------------------------------------
# Composite probes
# ---------------------------------------------------------------------------


def liveness_check() -> tuple[bool, list[str]]:
    """
    Lightweight liveness probe: just confirms the Python process is responsive.
    No I/O, no DB calls.  Return format matches readiness_check for consistency.
    """
    return (True, [])


async def readiness_check(
    pool_manager: PoolManager, settings: Settings
) -> tuple[bool, list[str]]:
    """
    Run MySQL + migration checks.
    Returns (ok, list of failure messages). ok is False if any check fails.
    """
    if not await check_database(pool_manager):
        return (False, ["mysql"])

    failures: list[str] = []
    if not await check_migrations(pool_manager, settings):
        failures.append("migrations_pending")
    return (len(failures) == 0, failures)
