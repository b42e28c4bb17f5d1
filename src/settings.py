"""
Application settings management.
Uses python-dotenv to load environment variables from .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

# Store original environment values to prevent modification
_ENV_CACHE = {}


def get_setting(key: str, default=None):
    """
    Get a setting from environment variables.

    Returns a copy of the value to prevent accidental modification of the
    cached environment value.

    Args:
        key: Environment variable name
        default: Default value if not found

    Returns:
        The environment variable value or default

    Example:
        >>> RESEARCH_DB_PATH = get_setting('RESEARCH_DB_PATH', 'data/research.db')
        >>> DEBUG = get_setting('DEBUG', 'False') == 'True'
    """
    # Use cached value if available, otherwise get from env
    if key not in _ENV_CACHE:
        _ENV_CACHE[key] = os.getenv(key, default)

    value = _ENV_CACHE[key]

    # For mutable types, return a copy
    if isinstance(value, (list, dict)):
        return value.copy()

    return value


def get_bool_setting(key: str, default: bool = False) -> bool:
    """Read a boolean flag ('true', '1', 'yes' are truthy)."""
    value = get_setting(key)
    if value is None:
        return default
    return str(value).lower() in ('true', '1', 'yes')


# Debug mode
DEBUG = get_bool_setting('DEBUG')

# Logging
LOG_LEVEL = get_setting('LOG_LEVEL', 'DEBUG' if DEBUG else 'WARNING').upper()

# Database
RESEARCH_DB_PATH = get_setting('RESEARCH_DB_PATH', 'data/research.db')
SQL_ECHO = get_bool_setting('SQL_ECHO')

# Environment description that cannot be detected reliably
GPU_INFO = get_setting('GPU_INFO')
COLAB_RUNTIME_TYPE = get_setting('COLAB_RUNTIME_TYPE')
