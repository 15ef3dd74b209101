"""
Observability components.

Provides contextual logging, operation metrics and health checks.
"""

from .health import (
    HealthChecker,
    HealthCheckResult,
    HealthStatus,
    check_handle_health,
    check_mongodb_health,
)
from .logging import (
    ContextualLoggerAdapter,
    clear_correlation_id,
    clear_operation_context,
    get_correlation_id,
    get_logger,
    get_logging_context,
    log_operation,
    operation_context,
    set_correlation_id,
    set_operation_context,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    record_operation,
    timed_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    "timed_operation",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "set_operation_context",
    "clear_operation_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
    "operation_context",
    # Health
    "HealthStatus",
    "HealthCheckResult",
    "HealthChecker",
    "check_mongodb_health",
    "check_handle_health",
]
