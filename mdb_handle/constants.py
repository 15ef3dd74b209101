"""
Constants for MDB_HANDLE.

Driver option defaults shared by the handle and its configuration, kept in
one place to avoid magic numbers.
"""

from typing import Final

# ============================================================================
# CLIENT DEFAULTS
# ============================================================================

DEFAULT_APP_NAME: Final[str] = "MDB_HANDLE"
"""Application name reported to the server in the client handshake."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

MIN_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 1000
"""Smallest server selection timeout accepted by HandleConfig.validate()."""

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 0
"""Default minimum MongoDB connection pool size (driver default)."""

DEFAULT_RETRY_WRITES: Final[bool] = True
DEFAULT_RETRY_READS: Final[bool] = True

# ============================================================================
# HEALTH CHECK CONSTANTS
# ============================================================================

DEFAULT_HEALTH_CHECK_TIMEOUT_SECONDS: Final[float] = 5.0
"""Timeout for the ping issued by health checks (seconds)."""

# ============================================================================
# METRICS CONSTANTS
# ============================================================================

DEFAULT_MAX_METRICS: Final[int] = 10000
"""Maximum number of distinct metric keys kept before LRU eviction."""

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_MONGO_URI: Final[str] = "MONGO_URI"
ENV_MAX_POOL_SIZE: Final[str] = "MONGO_MAX_POOL_SIZE"
ENV_MIN_POOL_SIZE: Final[str] = "MONGO_MIN_POOL_SIZE"
ENV_SERVER_SELECTION_TIMEOUT_MS: Final[str] = "MONGO_SERVER_SELECTION_TIMEOUT_MS"
ENV_APP_NAME: Final[str] = "MONGO_APP_NAME"
