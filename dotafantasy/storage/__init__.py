"""
Storage module for tournament data.

Provides a unified interface for the database backends:
- SQLite (local development, tests)
- Supabase (PostgreSQL, production)

Usage:
    from dotafantasy.storage import get_database

    db = get_database()  # Uses DB_TYPE env var
    tournaments = db.get_tournaments(tier='ti')
"""

from .base import DatabaseInterface
from .factory import get_database, reset_database
from .exceptions import (
    DatabaseError,
    ConnectionError,
    ConfigurationError,
    SchemaError,
    QueryError
)

__all__ = [
    'DatabaseInterface',
    'get_database',
    'reset_database',
    'DatabaseError',
    'ConnectionError',
    'ConfigurationError',
    'SchemaError',
    'QueryError'
]
