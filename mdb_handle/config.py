"""
Configuration management for MDB_HANDLE.

Configuration is optional - a DatabaseHandle can always be built from a bare
connection URL. HandleConfig adds environment variable support and
validation for the handful of driver options the handle sets itself.
"""

import os
from typing import Any, Dict

from .constants import (
    DEFAULT_APP_NAME,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_RETRY_READS,
    DEFAULT_RETRY_WRITES,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    ENV_APP_NAME,
    ENV_MAX_POOL_SIZE,
    ENV_MIN_POOL_SIZE,
    ENV_MONGO_URI,
    ENV_SERVER_SELECTION_TIMEOUT_MS,
    MIN_SERVER_SELECTION_TIMEOUT_MS,
)
from .exceptions import ConfigurationError


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer",
            config_key=name,
            config_value=raw,
        ) from e


class HandleConfig:
    """
    DatabaseHandle configuration.

    Explicit arguments win over environment variables, which win over the
    defaults in ``mdb_handle.constants``.

    Example:
        # Using environment variables
        config = HandleConfig()
        handle = DatabaseHandle.from_config(config)

        # Or using direct parameters
        handle = DatabaseHandle("mongodb://localhost:27017")
    """

    def __init__(
        self,
        mongo_uri: str | None = None,
        max_pool_size: int | None = None,
        min_pool_size: int | None = None,
        server_selection_timeout_ms: int | None = None,
        app_name: str | None = None,
        retry_writes: bool = DEFAULT_RETRY_WRITES,
        retry_reads: bool = DEFAULT_RETRY_READS,
    ):
        """
        Initialize configuration.

        Args:
            mongo_uri: MongoDB connection URI (defaults to MONGO_URI env var)
            max_pool_size: Maximum connection pool size (defaults to 50 or MONGO_MAX_POOL_SIZE)
            min_pool_size: Minimum connection pool size (defaults to 0 or MONGO_MIN_POOL_SIZE)
            server_selection_timeout_ms: Server selection timeout in ms (defaults to 5000
                or MONGO_SERVER_SELECTION_TIMEOUT_MS)
            app_name: Application name sent to the server (defaults to MDB_HANDLE
                or MONGO_APP_NAME)
            retry_writes: Enable driver-level retryable writes
            retry_reads: Enable driver-level retryable reads
        """
        self.mongo_uri = mongo_uri if mongo_uri is not None else os.getenv(ENV_MONGO_URI, "")
        self.max_pool_size = (
            max_pool_size
            if max_pool_size is not None
            else _int_from_env(ENV_MAX_POOL_SIZE, DEFAULT_MAX_POOL_SIZE)
        )
        self.min_pool_size = (
            min_pool_size
            if min_pool_size is not None
            else _int_from_env(ENV_MIN_POOL_SIZE, DEFAULT_MIN_POOL_SIZE)
        )
        self.server_selection_timeout_ms = (
            server_selection_timeout_ms
            if server_selection_timeout_ms is not None
            else _int_from_env(ENV_SERVER_SELECTION_TIMEOUT_MS, DEFAULT_SERVER_SELECTION_TIMEOUT_MS)
        )
        self.app_name = app_name or os.getenv(ENV_APP_NAME, DEFAULT_APP_NAME)
        self.retry_writes = retry_writes
        self.retry_reads = retry_reads

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        if not self.mongo_uri:
            raise ConfigurationError(
                "mongo_uri is required (set MONGO_URI environment variable or pass directly)",
                config_key="mongo_uri",
            )

        if self.max_pool_size < 1:
            raise ConfigurationError(
                f"max_pool_size must be >= 1, got {self.max_pool_size}",
                config_key="max_pool_size",
                config_value=self.max_pool_size,
            )

        if self.min_pool_size < 0:
            raise ConfigurationError(
                f"min_pool_size must be >= 0, got {self.min_pool_size}",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )

        if self.min_pool_size > self.max_pool_size:
            raise ConfigurationError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )

        if self.server_selection_timeout_ms < MIN_SERVER_SELECTION_TIMEOUT_MS:
            raise ConfigurationError(
                f"server_selection_timeout_ms must be >= {MIN_SERVER_SELECTION_TIMEOUT_MS}, "
                f"got {self.server_selection_timeout_ms}",
                config_key="server_selection_timeout_ms",
                config_value=self.server_selection_timeout_ms,
            )

    def to_client_options(self) -> Dict[str, Any]:
        """Keyword options for AsyncIOMotorClient."""
        return {
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "appname": self.app_name,
            "maxPoolSize": self.max_pool_size,
            "minPoolSize": self.min_pool_size,
            "retryWrites": self.retry_writes,
            "retryReads": self.retry_reads,
        }

    def __repr__(self) -> str:
        # Never echo the URI, it usually carries credentials.
        return (
            f"HandleConfig(max_pool_size={self.max_pool_size}, "
            f"min_pool_size={self.min_pool_size}, "
            f"server_selection_timeout_ms={self.server_selection_timeout_ms}, "
            f"app_name={self.app_name!r})"
        )
