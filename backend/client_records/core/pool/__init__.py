"""
Application database pool (PyMySQL behind a SQLAlchemy QueuePool).
"""

from .connect import (
    ER_DUP_ENTRY,
    ER_TABLE_EXISTS_ERROR,
    ConnectionConfig,
    build_connection_config,
    connect,
    mysql_error_code,
)
from .health import probe
from .manager import ExecuteResult, PooledConnection, PoolManager

__all__ = [
    "ER_DUP_ENTRY",
    "ER_TABLE_EXISTS_ERROR",
    "ConnectionConfig",
    "build_connection_config",
    "connect",
    "mysql_error_code",
    "probe",
    "ExecuteResult",
    "PooledConnection",
    "PoolManager",
]
