from .database import ConnectStatus, Database, Record
from .errors import (
    ConnectError,
    DBError,
    IOCorruptionError,
    NotConnectedError,
    PersistenceError,
    ValidationError,
)
from .query import is_simple_filter, matches, scan, strict_equal

__all__ = [
    "ConnectError",
    "ConnectStatus",
    "Database",
    "DBError",
    "IOCorruptionError",
    "NotConnectedError",
    "PersistenceError",
    "Record",
    "ValidationError",
    "is_simple_filter",
    "matches",
    "scan",
    "strict_equal",
]
