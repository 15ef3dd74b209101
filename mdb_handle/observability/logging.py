"""
Contextual logging for MDB_HANDLE.

Log records emitted through ``get_logger`` carry the current correlation ID
and operation context (operation, database, collection) in ``extra``, so a
formatter or JSON handler can print them without the call sites repeating
them.
"""

import contextlib
import contextvars
import logging
import uuid
from collections.abc import Iterator
from datetime import datetime
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mdb_handle_correlation_id", default=None
)
_operation_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "mdb_handle_operation_context", default={}
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set (or generate) the correlation ID for the current context and return it."""
    correlation_id = correlation_id or str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    _correlation_id.set(None)


def set_operation_context(**kwargs: Any) -> None:
    """Replace the operation context for the current task."""
    _operation_context.set(dict(kwargs))


def clear_operation_context() -> None:
    _operation_context.set({})


@contextlib.contextmanager
def operation_context(**kwargs: Any) -> Iterator[dict[str, Any]]:
    """
    Extend the operation context for the duration of a block.

    Nested blocks layer on top of the outer context and the previous value is
    restored on exit, also when the block raises.

    Usage:
        with operation_context(operation="find", database="shop"):
            logger.debug("querying")
    """
    merged = {**_operation_context.get(), **kwargs}
    token = _operation_context.set(merged)
    try:
        yield merged
    finally:
        _operation_context.reset(token)


def get_logging_context() -> dict[str, Any]:
    """Snapshot of the correlation ID and operation context, plus a timestamp."""
    context: dict[str, Any] = {"timestamp": datetime.now().isoformat()}

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    context.update(_operation_context.get())
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Merges the logging context into every record; explicit ``extra`` wins."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()
        context.update(kwargs.get("extra") or {})
        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """Contextual logger wrapping ``logging.getLogger(name)``."""
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log the outcome of an operation with structured context.

    Args:
        logger: Logger or adapter to emit on
        operation: Operation name, e.g. "handle.destroy"
        level: Log level
        success: Whether the operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional fields for ``extra``
    """
    extra = get_logging_context()
    extra.update(context)
    extra["operation"] = operation
    extra["success"] = success

    message = f"Operation: {operation}" if success else f"Operation failed: {operation}"
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=extra)
