"""
Storage errors.

Backends wrap driver failures (sqlite3, PostgREST) in these so callers
such as the importer handle one hierarchy regardless of DB_TYPE.
"""

from typing import Optional


class DatabaseError(Exception):
    """Any storage failure."""
    pass


class ConnectionError(DatabaseError):
    """The backend could not be reached or its client could not be built."""
    pass


class ConfigurationError(DatabaseError):
    """DB_TYPE is unknown or the selected backend lacks its settings."""
    pass


class SchemaError(DatabaseError):
    """Tables could not be created (SQLite) or are missing (Supabase)."""
    pass


class QueryError(DatabaseError):
    """A read, upsert or group update was rejected by the backend."""

    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.table = table
