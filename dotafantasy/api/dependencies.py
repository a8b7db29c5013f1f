"""FastAPI dependencies for dependency injection."""

from dotafantasy.storage import DatabaseInterface, get_database


def get_db() -> DatabaseInterface:
    """Get database dependency."""
    return get_database()
