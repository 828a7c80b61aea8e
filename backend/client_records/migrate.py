"""
Apply pending SQL migrations and exit.

    python -m client_records.migrate

Exit code 0 on success (including "nothing pending"), 1 on any failure.
The pool is closed on every exit path.
"""

import asyncio
import logging
import sys

from client_records.core.config import Settings, settings
from client_records.core.pool import PoolManager
from client_records.migrations import MigrationReport, MigrationRunner

logger = logging.getLogger(__name__)


async def run_migrations(config: Settings) -> MigrationReport:
    pool_manager = PoolManager(config)
    runner = MigrationRunner(
        pool_manager, config.migrations_path, config.MIGRATIONS_TABLE
    )
    try:
        return await runner.run()
    finally:
        # run() already closes the pool; this covers failures before it starts.
        await pool_manager.close_pool()


def main() -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        report = asyncio.run(run_migrations(settings))
    except Exception:
        logger.exception("Migration failed")
        return 1
    logger.info(
        "Migrations done: %d applied, %d already present",
        len(report.applied),
        len(report.recovered),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
