"""
Database connection self-test.

    python -m client_records.check_connection

Initializes the pool, runs a trivial query, counts clients and reads the
server version. Exit code 0 when every step passes, 1 otherwise.
"""

import asyncio
import logging
import sys
from typing import Any

from client_records.core.config import settings
from client_records.core.pool import PoolManager

logger = logging.getLogger(__name__)


async def check_connection(pool_manager: PoolManager) -> dict[str, Any]:
    """Run the connection checks; always closes the pool afterwards."""
    try:
        logger.info("[1/4] Initializing connection pool...")
        await pool_manager.get_pool()

        logger.info("[2/4] Executing test query...")
        rows = await pool_manager.query("SELECT 1 + 1 AS result")
        result = rows[0]["result"]
        logger.info("Result: %s", result)

        logger.info("[3/4] Checking clients table...")
        rows = await pool_manager.query("SELECT COUNT(*) AS count FROM clients")
        total = rows[0]["count"]
        logger.info("Total clients: %s", total)

        logger.info("[4/4] Checking MySQL version...")
        rows = await pool_manager.query("SELECT VERSION() AS version")
        version = rows[0]["version"]
        logger.info("Version: %s", version)

        return {"result": result, "clients": total, "version": version}
    finally:
        await pool_manager.close_pool()


def main() -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(check_connection(PoolManager(settings)))
    except Exception:
        logger.exception("Connection test failed")
        return 1
    logger.info("All connection checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
