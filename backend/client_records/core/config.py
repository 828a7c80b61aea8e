from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

SOCKET_PATH_PREFIX = "/cloudsql/"
DEFAULT_MYSQL_PORT = 3306
DEFAULT_PASSWORD_SECRET = "db-password"

_PACKAGED_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations" / "sql"


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "Client Information System"
    API_PREFIX: str = "/api"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None
    PORT: int = 3000

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # -- MySQL ---------------------------------------------------------------
    # DB_HOST is either a TCP hostname or a Cloud SQL unix socket path
    # (/cloudsql/PROJECT_ID:REGION:INSTANCE_ID).
    DB_HOST: str = "localhost"
    DB_PORT: int = DEFAULT_MYSQL_PORT
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    DB_NAME: str = ""
    DB_SSL: bool = False
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_CONNECT_TIMEOUT: int = 10

    # -- Secret Manager ------------------------------------------------------
    # When set, the password is always fetched from Secret Manager, even if
    # DB_PASSWORD is also present.
    DB_PASSWORD_SECRET: str | None = None
    GOOGLE_CLOUD_PROJECT: str | None = None
    GCP_PROJECT: str | None = None
    SECRET_FETCH_TIMEOUT: float = 10.0

    # -- Migrations ----------------------------------------------------------
    MIGRATIONS_DIR: Path | None = None
    MIGRATIONS_TABLE: str = "schema_migrations"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_unix_socket(self) -> bool:
        return self.DB_HOST.startswith(SOCKET_PATH_PREFIX)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def gcp_project(self) -> str | None:
        return self.GOOGLE_CLOUD_PROJECT or self.GCP_PROJECT

    @computed_field  # type: ignore[prop-decorator]
    @property
    def migrations_path(self) -> Path:
        return self.MIGRATIONS_DIR or _PACKAGED_MIGRATIONS_DIR


settings = Settings()  # type: ignore
