"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


# =============================================================================
# SERVER SETTINGS
# =============================================================================
PORT = _get_int('PORT', 8000)
HOST = _get_str('HOST', '0.0.0.0')

# =============================================================================
# DATABASE SETTINGS
# =============================================================================
# sqlite (local development) or supabase (managed Postgres)
DB_TYPE = _get_str('DB_TYPE', 'sqlite')

# Directory for the local SQLite file
DATA_DIR = _get_str('DATA_DIR', 'data')

SUPABASE_URL = _get_str('SUPABASE_URL', '')
SUPABASE_KEY = _get_str('SUPABASE_KEY', '')

# =============================================================================
# PROVIDER SETTINGS
# =============================================================================
LIQUIPEDIA_API_URL = _get_str('LIQUIPEDIA_API_URL', 'https://liquipedia.net/dota2/api.php')
LIQUIPEDIA_USER_AGENT = _get_str(
    'LIQUIPEDIA_USER_AGENT',
    'DotaFantasy/1.0 (https://github.com/dotafantasy/dotafantasy; contact@dotafantasy.app)'
)

# Liquipedia asks for 2s between standard requests and 30s between parse requests
LIQUIPEDIA_RATE_LIMIT_SECONDS = _get_float('LIQUIPEDIA_RATE_LIMIT_SECONDS', 2.0)
LIQUIPEDIA_PARSE_RATE_LIMIT_SECONDS = _get_float('LIQUIPEDIA_PARSE_RATE_LIMIT_SECONDS', 30.0)

STRATZ_API_URL = _get_str('STRATZ_API_URL', 'https://api.stratz.com/graphql')
STRATZ_API_TOKEN = _get_str('STRATZ_API_TOKEN', '')
STRATZ_RATE_LIMIT_SECONDS = _get_float('STRATZ_RATE_LIMIT_SECONDS', 2.0)

# Timeout for every outbound provider request (in seconds)
HTTP_TIMEOUT_SECONDS = _get_float('HTTP_TIMEOUT_SECONDS', 30.0)

# =============================================================================
# CACHE SETTINGS
# =============================================================================
# How long provider responses stay cached in memory (in seconds)
# Default: 5 minutes
CACHE_TTL_SECONDS = _get_int('CACHE_TTL_SECONDS', 300)

# =============================================================================
# IMPORT SETTINGS
# =============================================================================
# Baseline fantasy valuation for every newly linked tournament player
DEFAULT_FANTASY_VALUE = _get_float('DEFAULT_FANTASY_VALUE', 100.0)

# Cooldown between manual import requests (in seconds)
# Default: 5 minutes (300 seconds)
IMPORT_COOLDOWN_SECONDS = _get_int('IMPORT_COOLDOWN_SECONDS', 300)

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
