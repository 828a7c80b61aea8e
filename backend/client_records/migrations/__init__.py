"""
Ledger-tracked SQL migrations (files live in ``migrations/sql``).
"""

from .runner import (
    MigrationReport,
    MigrationRunner,
    is_already_exists,
    split_statements,
)

__all__ = [
    "MigrationReport",
    "MigrationRunner",
    "is_already_exists",
    "split_statements",
]
