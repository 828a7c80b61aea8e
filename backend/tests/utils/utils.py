from typing import Any

import pymysql
from sqlalchemy import exc as sa_exc

from client_records.core.config import Settings


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from .env and from GCP/secret variables of the host."""
    values: dict[str, Any] = {
        "DB_HOST": "localhost",
        "DB_USER": "app",
        "DB_PASSWORD": "app-password",
        "DB_NAME": "clients_db",
        "DB_PASSWORD_SECRET": None,
        "GOOGLE_CLOUD_PROJECT": None,
        "GCP_PROJECT": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


def db_error(
    code: int,
    message: str,
    cls: type[sa_exc.DBAPIError] = sa_exc.ProgrammingError,
    statement: str = "statement",
) -> sa_exc.DBAPIError:
    """A SQLAlchemy-wrapped PyMySQL error, as raised by PoolManager.query."""
    return cls(statement, None, pymysql.err.MySQLError(code, message))
