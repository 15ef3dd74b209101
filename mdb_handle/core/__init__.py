"""
Core MDB_HANDLE components.

This module contains the DatabaseHandle class and its lifecycle types.
"""

from .handle import DatabaseHandle
from .types import (Document, DocumentList, Filter, HandleState, Items, Options,
                    UpdateSpec)

__all__ = [
    "DatabaseHandle",
    "HandleState",
    # Type aliases
    "Document",
    "DocumentList",
    "Filter",
    "Items",
    "Options",
    "UpdateSpec",
]
