"""
Error kinds raised by the pool, secret and migration layers.

Every error propagates to the caller (HTTP handler or CLI). The migration
runner is the only place that recovers from one (``AlreadyExistsError``).
"""


class ClientRecordsError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ClientRecordsError):
    """Required database settings are missing; never retried."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Missing required database configuration: " + ", ".join(self.missing)
        )


class DatabaseConnectionError(ClientRecordsError, ConnectionError):
    """The liveness probe or the transport failed while building the pool."""


class SecretFetchError(ClientRecordsError):
    """Secret Manager was unreachable or the secret does not exist."""

    def __init__(self, secret_name: str, reason: str) -> None:
        self.secret_name = secret_name
        super().__init__(f"Failed to fetch secret {secret_name}: {reason}")


class OperationTimeoutError(ClientRecordsError, TimeoutError):
    """Pool checkout, liveness probe or secret fetch exceeded its time bound."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g}s")


class AlreadyExistsError(ClientRecordsError):
    """A migration statement targets an object that already exists."""


class MigrationExecutionError(ClientRecordsError):
    """A migration statement failed; the run is aborted."""

    def __init__(self, migration: str, cause: BaseException) -> None:
        self.migration = migration
        super().__init__(f"Migration {migration} failed: {cause}")
