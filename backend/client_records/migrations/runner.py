"""
SQL migration runner.

Applies ``*.sql`` files from a directory in file-name order and records each
one in a ledger table (``schema_migrations``). Safe to run repeatedly:

- files already in the ledger are skipped;
- a file whose statements fail because the target object already exists
  (MySQL 1050 or an "already exists" message) is recorded as applied;
- any other failure aborts the run; files applied earlier in the same run
  stay recorded (there is no run-wide transaction).

Statements are split on ``;``. The splitter does not understand string
literals, so migrations must not contain ``;`` inside quoted values.
"""

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field
from sqlalchemy import exc as sa_exc

from client_records.core.errors import MigrationExecutionError
from client_records.core.pool import (
    ER_TABLE_EXISTS_ERROR,
    PoolManager,
    mysql_error_code,
)

logger = logging.getLogger(__name__)

MIGRATION_SUFFIX = ".sql"
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class MigrationReport(BaseModel):
    """Outcome of one run: files applied normally and files recorded as already present."""

    applied: list[str] = Field(default_factory=list)
    recovered: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.applied) + len(self.recovered)


def split_statements(sql: str) -> list[str]:
    """
    Split a migration script on ``;``.

    Leading ``--`` comment lines are stripped from each fragment and fragments
    left empty are dropped, so a comment above a statement does not hide it.
    """
    statements: list[str] = []
    for fragment in sql.split(";"):
        lines = fragment.strip().splitlines()
        while lines and (not lines[0].strip() or lines[0].lstrip().startswith("--")):
            lines.pop(0)
        statement = "\n".join(lines).strip()
        if statement:
            statements.append(statement)
    return statements


def is_already_exists(exc: BaseException) -> bool:
    """True if a driver error means the statement's target already exists."""
    if mysql_error_code(exc) == ER_TABLE_EXISTS_ERROR:
        return True
    # str() of a SQLAlchemy error includes the statement; match the driver message only.
    return "already exists" in str(getattr(exc, "orig", None) or exc)


class MigrationRunner:
    def __init__(
        self,
        pool_manager: PoolManager,
        migrations_dir: Path,
        table: str = "schema_migrations",
    ) -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid migrations table name: {table!r}")
        self._pool = pool_manager
        self.migrations_dir = Path(migrations_dir)
        self.table = table

    async def ensure_ledger(self) -> None:
        await self._pool.query(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id INT AUTO_INCREMENT PRIMARY KEY,
                migration_name VARCHAR(255) NOT NULL UNIQUE,
                executed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                INDEX idx_migration_name (migration_name)
            ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
            """
        )
        logger.info("Migrations table %s ready", self.table)

    async def applied_migrations(self) -> list[str]:
        rows = await self._pool.query(
            f"SELECT migration_name FROM {self.table} ORDER BY executed_at"
        )
        return [row["migration_name"] for row in rows]

    def migration_files(self) -> list[str]:
        """``*.sql`` file names in execution order; creates the directory if absent."""
        if not self.migrations_dir.exists():
            logger.info(
                "No migrations directory found, creating %s", self.migrations_dir
            )
            self.migrations_dir.mkdir(parents=True, exist_ok=True)
            return []
        return sorted(
            p.name
            for p in self.migrations_dir.iterdir()
            if p.is_file() and p.name.endswith(MIGRATION_SUFFIX)
        )

    async def pending(self) -> list[str]:
        """File names not yet in the ledger, in execution order."""
        await self.ensure_ledger()
        applied = set(await self.applied_migrations())
        return [name for name in self.migration_files() if name not in applied]

    async def apply(self, name: str) -> bool:
        """
        Execute one migration file and record it.

        Returns True when every statement ran, False when the file was recorded
        because its objects already exist. Raises ``MigrationExecutionError``
        for any other statement failure.
        """
        sql = (self.migrations_dir / name).read_text(encoding="utf-8")
        statements = split_statements(sql)
        logger.info("Running migration: %s (%d statements)", name, len(statements))
        try:
            for statement in statements:
                await self._pool.query(statement)
        except sa_exc.DBAPIError as e:
            if not is_already_exists(e):
                logger.error("Migration %s failed: %s", name, e)
                raise MigrationExecutionError(name, e) from e
            logger.warning(
                "Migration %s already applied (object exists), marking as executed",
                name,
            )
            # INSERT IGNORE: another runner may have recorded it concurrently.
            await self._pool.query(
                f"INSERT IGNORE INTO {self.table} (migration_name) VALUES (%s)",
                [name],
            )
            return False

        await self._pool.query(
            f"INSERT INTO {self.table} (migration_name) VALUES (%s)", [name]
        )
        logger.info("Migration %s completed successfully", name)
        return True

    async def run(self) -> MigrationReport:
        """Apply all pending migrations, then close the pool whatever the outcome."""
        logger.info("Starting database migrations")
        report = MigrationReport()
        try:
            pending = await self.pending()
            if not pending:
                logger.info("No pending migrations. Database is up to date.")
                return report

            logger.info(
                "Found %d pending migration(s): %s", len(pending), ", ".join(pending)
            )
            for name in pending:
                if await self.apply(name):
                    report.applied.append(name)
                else:
                    report.recovered.append(name)
            logger.info("All migrations completed successfully")
            return report
        finally:
            await self._pool.close_pool()
