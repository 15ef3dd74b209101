"""
Health check utilities for MDB_HANDLE.

Health checks report problems as results instead of raising, so they can be
wired straight into a readiness endpoint.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

from ..constants import DEFAULT_HEALTH_CHECK_TIMEOUT_SECONDS

if TYPE_CHECKING:
    from ..core.handle import DatabaseHandle

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    name: str
    status: HealthStatus
    message: str
    details: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class HealthChecker:
    """
    Runs a set of async health checks and folds them into one status.
    """

    def __init__(self):
        self._checks: list[Callable[[], Awaitable[HealthCheckResult]]] = []

    def register_check(self, check_func: Callable[[], Awaitable[HealthCheckResult]]) -> None:
        """
        Register a health check function.

        Args:
            check_func: Async function that returns HealthCheckResult
        """
        self._checks.append(check_func)

    async def check_all(self) -> dict[str, Any]:
        """
        Run all registered health checks.

        Returns:
            Dictionary with overall status and individual check results
        """
        results: list[HealthCheckResult] = []

        for check_func in self._checks:
            try:
                result = await check_func()
                results.append(result)
            except (
                RuntimeError,
                ValueError,
                TypeError,
                AttributeError,
                ConnectionError,
                OSError,
            ) as e:
                name = getattr(check_func, "__name__", repr(check_func))
                logger.error(f"Health check {name} failed: {e}", exc_info=True)
                results.append(
                    HealthCheckResult(
                        name=name,
                        status=HealthStatus.UNKNOWN,
                        message=f"Check failed: {str(e)}",
                    )
                )

        statuses = [r.status for r in results]
        if HealthStatus.UNHEALTHY in statuses:
            overall_status = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall_status = HealthStatus.DEGRADED
        elif statuses and all(s == HealthStatus.HEALTHY for s in statuses):
            overall_status = HealthStatus.HEALTHY
        else:
            overall_status = HealthStatus.UNKNOWN

        return {
            "status": overall_status.value,
            "timestamp": datetime.now().isoformat(),
            "checks": [r.to_dict() for r in results],
        }


async def check_mongodb_health(
    mongo_client: Any | None,
    timeout_seconds: float = DEFAULT_HEALTH_CHECK_TIMEOUT_SECONDS,
) -> HealthCheckResult:
    """
    Check MongoDB connection health with a ping.

    Args:
        mongo_client: MongoDB client instance
        timeout_seconds: Timeout for health check

    Returns:
        HealthCheckResult
    """
    if mongo_client is None:
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.UNHEALTHY,
            message="MongoDB client not initialized",
        )

    try:
        await asyncio.wait_for(mongo_client.admin.command("ping"), timeout=timeout_seconds)

        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.HEALTHY,
            message="MongoDB connection is healthy",
            details={"timeout_seconds": timeout_seconds},
        )
    except asyncio.TimeoutError:
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.UNHEALTHY,
            message=f"MongoDB ping timed out after {timeout_seconds}s",
        )
    except (PyMongoError, AttributeError, TypeError) as e:
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.UNHEALTHY,
            message=f"MongoDB health check failed: {str(e)}",
        )


async def check_handle_health(
    handle: "DatabaseHandle | None",
    timeout_seconds: float = DEFAULT_HEALTH_CHECK_TIMEOUT_SECONDS,
) -> HealthCheckResult:
    """
    Check a DatabaseHandle's health.

    A destroyed handle is always unhealthy. Otherwise the underlying client is
    pinged; the handle's own lifecycle state is left untouched.

    Args:
        handle: DatabaseHandle instance
        timeout_seconds: Timeout for the ping

    Returns:
        HealthCheckResult
    """
    if handle is None:
        return HealthCheckResult(
            name="handle",
            status=HealthStatus.UNHEALTHY,
            message="DatabaseHandle not created",
        )

    if handle.is_closed:
        return HealthCheckResult(
            name="handle",
            status=HealthStatus.UNHEALTHY,
            message="DatabaseHandle has been destroyed",
            details={"state": handle.state.value},
        )

    try:
        client = handle.client
    except PyMongoError as e:
        return HealthCheckResult(
            name="handle",
            status=HealthStatus.UNHEALTHY,
            message=f"MongoDB client could not be created: {str(e)}",
            details={"state": handle.state.value},
        )

    result = await check_mongodb_health(client, timeout_seconds=timeout_seconds)
    details = dict(result.details or {})
    details["state"] = handle.state.value
    return HealthCheckResult(
        name="handle",
        status=result.status,
        message=result.message,
        details=details,
    )
