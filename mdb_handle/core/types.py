"""
Type definitions for MDB_HANDLE.

Filters, update specifications, documents and driver options are opaque to
the handle; these aliases only document intent at call sites.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping

Document = Dict[str, Any]
Filter = Mapping[str, Any]
UpdateSpec = Mapping[str, Any]
Options = Mapping[str, Any]
Items = Iterable[Mapping[str, Any]]
DocumentList = List[Document]


class HandleState(str, Enum):
    """Lifecycle of a DatabaseHandle. CLOSED is terminal."""

    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    CLOSED = "closed"
