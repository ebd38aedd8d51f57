from __future__ import annotations


class DBError(Exception):
    """Base class for all errors raised by the store."""


class ConnectError(DBError):
    """The database file could not be created (directory or initial write failed)."""


class NotConnectedError(DBError):
    """An operation was attempted before connect() succeeded."""


class IOCorruptionError(DBError):
    """The file on disk is not a valid JSON object of records."""


class PersistenceError(DBError):
    """
    Writing the collection to disk failed after an in-memory mutation.
    Memory holds the new state; call Database.flush() to retry.
    """


class ValidationError(DBError, ValueError):
    """Input is not a record/filter/patch the store can hold."""
