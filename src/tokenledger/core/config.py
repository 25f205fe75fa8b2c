"""
tokenledger configuration

All settings come from environment variables so the same build runs under
tests, the CLI and an embedding host without code changes.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_bool_env(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(f"{env_var} must be a boolean flag, got {raw!r}")


def _get_log_level(env_var: str, default: str) -> str:
    level = os.getenv(env_var, default).strip().upper() or default
    if level == "WARN":
        level = "WARNING"
    if level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"{env_var} must be one of {', '.join(VALID_LOG_LEVELS)}, got {level!r}"
        )
    return level


def default_state_db_path() -> str:
    """Location of the SQLite world state used when nothing else is configured."""
    return os.path.join(os.path.expanduser("~"), ".tokenledger", "world_state.db")


STATE_DB_PATH = os.getenv("TOKENLEDGER_STATE_DB", "").strip() or default_state_db_path()
LOG_LEVEL = _get_log_level("TOKENLEDGER_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("TOKENLEDGER_LOG_FILE", "").strip()
ENVIRONMENT = os.getenv("TOKENLEDGER_ENVIRONMENT", "development").strip() or "development"
METRICS_ENABLED = _get_bool_env("TOKENLEDGER_METRICS_ENABLED", "1")

# Wire-level constants shared with external subscribers and stored state.
ALLOWANCE_NAMESPACE = "insurance"
TRANSFER_EVENT_NAME = "transferEvent"
