"""
MDB_HANDLE - MongoDB Handle

A small asynchronous convenience wrapper around the MongoDB driver: lazy
connection management plus find/update/add/remove addressed by database and
collection name.
"""

from .config import HandleConfig
from .core import DatabaseHandle, HandleState
from .exceptions import ConfigurationError, HandleClosedError, MongoHandleError

__version__ = "0.1.0"

__all__ = [
    # Core
    "DatabaseHandle",
    "HandleState",
    # Configuration
    "HandleConfig",
    # Errors
    "MongoHandleError",
    "HandleClosedError",
    "ConfigurationError",
]
