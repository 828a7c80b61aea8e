"""
Google Cloud Secret Manager lookups with an in-process cache.

Secrets are fetched at runtime so they never live in code or config files.
Local development skips the remote store entirely by setting DB_PASSWORD
(and leaving DB_PASSWORD_SECRET unset).
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from client_records.core.config import DEFAULT_PASSWORD_SECRET, Settings
from client_records.core.errors import OperationTimeoutError, SecretFetchError

logger = logging.getLogger(__name__)


class SecretResolver:
    """Resolve secret names to values; each name is fetched at most once."""

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = (
            client_factory or secretmanager.SecretManagerServiceClient
        )
        self._client: Any = None
        self._cache: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def resolve(self, secret_name: str) -> str:
        """Return the latest version of *secret_name* (cached after first fetch)."""
        cached = self._cache.get(secret_name)
        if cached is not None:
            logger.debug("Using cached secret: %s", secret_name)
            return cached
        async with self._lock:
            cached = self._cache.get(secret_name)
            if cached is not None:
                return cached
            value = await self._fetch(secret_name)
            self._cache[secret_name] = value
            return value

    async def resolve_db_password(self) -> str:
        """
        Database password: DB_PASSWORD when no secret name is configured,
        otherwise the DB_PASSWORD_SECRET secret.

        With neither a password, a secret name nor a GCP project, the empty
        DB_PASSWORD is returned so pool validation reports it as missing.
        """
        secret_name = self._settings.DB_PASSWORD_SECRET
        if secret_name is None:
            if self._settings.DB_PASSWORD or not self._settings.gcp_project:
                logger.info("Using DB_PASSWORD from environment")
                return self._settings.DB_PASSWORD
            secret_name = DEFAULT_PASSWORD_SECRET
        return await self.resolve(secret_name)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _version_name(self, secret_name: str) -> str:
        project = self._settings.gcp_project
        if not project:
            raise SecretFetchError(
                secret_name, "GOOGLE_CLOUD_PROJECT (or GCP_PROJECT) is not set"
            )
        return f"projects/{project}/secrets/{secret_name}/versions/latest"

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _access(self, secret_name: str, name: str) -> str:
        timeout = self._settings.SECRET_FETCH_TIMEOUT
        try:
            client = self._get_client()
            response = client.access_secret_version(
                request={"name": name}, timeout=timeout
            )
        except gcp_exceptions.DeadlineExceeded as e:
            raise OperationTimeoutError(f"Fetching secret {secret_name}", timeout) from e
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise SecretFetchError(secret_name, str(e)) from e
        return response.payload.data.decode("utf-8").strip()

    async def _fetch(self, secret_name: str) -> str:
        name = self._version_name(secret_name)
        timeout = self._settings.SECRET_FETCH_TIMEOUT
        logger.info("Fetching secret %s from Secret Manager", secret_name)
        try:
            value = await asyncio.wait_for(
                asyncio.to_thread(self._access, secret_name, name), timeout
            )
        except OperationTimeoutError:
            raise
        except asyncio.TimeoutError:
            raise OperationTimeoutError(
                f"Fetching secret {secret_name}", timeout
            ) from None
        except SecretFetchError as e:
            logger.error("Error fetching secret %s: %s", secret_name, e)
            raise
        logger.info("Secret %s retrieved successfully", secret_name)
        return value
