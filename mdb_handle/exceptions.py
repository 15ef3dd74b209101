"""
Custom exceptions for MDB_HANDLE.

Only errors raised by the handle itself live here. Failures coming from the
MongoDB driver (``pymongo.errors.PyMongoError`` and friends) are never wrapped
and reach the caller exactly as the driver raised them.
"""

from typing import Any, Dict, Optional


class MongoHandleError(RuntimeError):
    """
    Base exception for MDB_HANDLE errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (database,
                 collection, operation, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class HandleClosedError(MongoHandleError):
    """
    Raised when an operation is attempted on a destroyed handle.

    A handle cannot be reconnected after ``destroy()``; create a new one.

    Attributes:
        message: Error message
        operation: Name of the rejected operation
        context: Additional context information
    """

    def __init__(
        self,
        message: str = "DatabaseHandle has been destroyed and cannot be reused",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if operation:
            context["operation"] = operation
        super().__init__(message, context=context)
        self.operation = operation


class ConfigurationError(MongoHandleError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
