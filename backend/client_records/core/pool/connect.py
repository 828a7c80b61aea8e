"""
Connection settings and PyMySQL connections for the application database.

Two transports are supported:

- unix socket (Cloud SQL on App Engine standard): ``DB_HOST=/cloudsql/PROJECT:REGION:INSTANCE``,
  port and SSL are ignored;
- TCP (Cloud Run, App Engine flexible, local proxy): ``DB_HOST`` + ``DB_PORT``,
  optional TLS without certificate verification (``DB_SSL=true``).
"""

import ssl
from typing import Any

import pymysql
from pydantic import BaseModel, model_validator

from client_records.core.config import DEFAULT_MYSQL_PORT, Settings

ER_TABLE_EXISTS_ERROR = 1050
ER_DUP_ENTRY = 1062

_REQUIRED_FIELDS = (
    ("user", "DB_USER"),
    ("password", "DB_PASSWORD"),
    ("database", "DB_NAME"),
)


class ConnectionConfig(BaseModel):
    """Resolved connection settings; exactly one of unix_socket or host is set."""

    host: str | None = None
    port: int | None = None
    unix_socket: str | None = None
    user: str = ""
    password: str = ""
    database: str = ""
    use_ssl: bool = False
    pool_size: int = 10
    connect_timeout: int = 10

    @model_validator(mode="after")
    def one_transport(self) -> "ConnectionConfig":
        if (self.unix_socket is None) == (self.host is None):
            raise ValueError("exactly one of unix_socket or host must be set")
        return self

    def missing_fields(self) -> list[str]:
        """Environment names of required settings that are empty."""
        return [env for attr, env in _REQUIRED_FIELDS if not getattr(self, attr)]

    def describe(self) -> str:
        """Target for log lines (never includes credentials)."""
        if self.unix_socket:
            return f"{self.unix_socket}/{self.database}"
        return f"{self.host}:{self.port}/{self.database}"


def build_connection_config(settings: Settings, password: str) -> ConnectionConfig:
    """Derive socket-vs-TCP configuration from settings and a resolved password."""
    common: dict[str, Any] = {
        "user": settings.DB_USER,
        "password": password,
        "database": settings.DB_NAME,
        "pool_size": settings.DB_POOL_SIZE,
        "connect_timeout": settings.DB_CONNECT_TIMEOUT,
    }
    if settings.is_unix_socket:
        return ConnectionConfig(unix_socket=settings.DB_HOST, **common)
    return ConnectionConfig(
        host=settings.DB_HOST,
        port=settings.DB_PORT or DEFAULT_MYSQL_PORT,
        use_ssl=settings.DB_SSL,
        **common,
    )


def _relaxed_ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def connect(config: ConnectionConfig) -> pymysql.connections.Connection:
    """Open one PyMySQL connection for *config*."""
    kwargs: dict[str, Any] = {
        "user": config.user,
        "password": config.password,
        "database": config.database,
        "charset": "utf8mb4",
        "connect_timeout": config.connect_timeout,
    }
    if config.unix_socket:
        kwargs["unix_socket"] = config.unix_socket
    else:
        kwargs["host"] = config.host
        kwargs["port"] = int(config.port or DEFAULT_MYSQL_PORT)
        if config.use_ssl:
            kwargs["ssl"] = _relaxed_ssl_context()
    return pymysql.connect(**kwargs)


def mysql_error_code(exc: BaseException) -> int | None:
    """MySQL error number of a PyMySQL error, bare or wrapped by SQLAlchemy."""
    orig = getattr(exc, "orig", None) or exc
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None
