"""
Application configuration
=========================

Settings are read from environment variables prefixed with ``LEASECALC_``;
every setting has a default suitable for local development.

Environment Variables
---------------------
LEASECALC_CACHE_MAX_SIZE : int
    Maximum number of cached calculation results (default: 100).
LEASECALC_CACHE_DEFAULT_TTL_SECONDS : float
    Lifetime of a cached result when no explicit TTL is given (default: 300).
LEASECALC_CACHE_CLEANUP_INTERVAL_SECONDS : float
    Interval of the background sweep for expired entries; 0 disables it
    (default: 60).
LEASECALC_SCHEDULE_PAGE_SIZE : int
    Default page size of the paginated amortization endpoint (default: 12).
LEASECALC_LOG_LEVEL : str
    Logging level (DEBUG, INFO, WARNING, ERROR).
LEASECALC_CORS_ORIGINS : list
    Allowed origins for ``/api/*``, JSON list or comma separated.

Example
-------
::

    export LEASECALC_CACHE_MAX_SIZE=500
    export LEASECALC_LOG_LEVEL=DEBUG
    flask --app leasecalc.wsgi run --port 5000
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from typing import Any, List

_ENV_PREFIX = "LEASECALC_"


def _get_env(key: str, default: Any, value_type: type = str) -> Any:
    """
    Get an environment variable with type conversion.

    Parameters
    ----------
    key : str
        Environment variable name (will be prefixed with LEASECALC_).
    default : Any
        Default value if not set or not convertible.
    value_type : type
        Type to convert to (str, int, float, bool, list).
    """
    env_value = os.environ.get(f"{_ENV_PREFIX}{key.upper()}")
    if env_value is None:
        return default

    try:
        if value_type == bool:
            return env_value.lower() in ("true", "1", "yes", "on")
        elif value_type == int:
            return int(env_value)
        elif value_type == float:
            return float(env_value)
        elif value_type == list:
            try:
                return json.loads(env_value)
            except json.JSONDecodeError:
                return [item.strip() for item in env_value.split(",") if item.strip()]
        else:
            return env_value
    except (ValueError, TypeError):
        return default


class Settings:
    """Configuration for the calculation API and its result cache."""

    def __init__(self) -> None:
        # Result cache
        self.cache_max_size: int = _get_env("CACHE_MAX_SIZE", 100, int)
        self.cache_default_ttl_seconds: float = _get_env("CACHE_DEFAULT_TTL_SECONDS", 300.0, float)
        self.cache_cleanup_interval_seconds: float = _get_env(
            "CACHE_CLEANUP_INTERVAL_SECONDS", 60.0, float
        )

        # API
        self.schedule_page_size: int = _get_env("SCHEDULE_PAGE_SIZE", 12, int)
        self.cors_origins: List[str] = _get_env(
            "CORS_ORIGINS", ["http://localhost:5173", "http://127.0.0.1:5173"], list
        )

        # Logging
        self.log_level: str = _get_env("LOG_LEVEL", "INFO", str)
        self.log_format: str = _get_env(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s", str
        )

    @property
    def log_level_int(self) -> int:
        """Return the log level as an integer constant."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def configure_logging(self) -> None:
        logging.basicConfig(level=self.log_level_int, format=self.log_format)
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once from the environment."""
    return Settings()
