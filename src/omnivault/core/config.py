"""Configuration management for OmniVault core."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key, "").lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    return default


PRODUCT_NAME = "omnivault"

# OmniVault Data Directory (XDG-style, defaults to ~/.omnivault)
OMNIVAULT_DATA_DIR = Path(
    get_env("OMNIVAULT_DATA_DIR", os.path.expanduser("~/.omnivault"))
    or os.path.expanduser("~/.omnivault")
)

# Local key-value medium
DATABASE_PATH = OMNIVAULT_DATA_DIR / "omnivault.db"

# Where exported backups are delivered by default
BACKUP_DIR = Path(
    get_env("OMNIVAULT_BACKUP_DIR", str(OMNIVAULT_DATA_DIR / "backups"))
    or str(OMNIVAULT_DATA_DIR / "backups")
)

# Remote authentication (optional)
SUPABASE_URL = get_env("SUPABASE_URL")
SUPABASE_ANON_KEY = get_env("SUPABASE_ANON_KEY")

# Generative text
INSIGHT_MODEL = get_env("OMNIVAULT_INSIGHT_MODEL", "") or None
INSIGHT_TIMEOUT_SECONDS = get_env_float("OMNIVAULT_INSIGHT_TIMEOUT", 20.0)
INSIGHTS_ENABLED = get_env_bool("OMNIVAULT_INSIGHTS_ENABLED", True)

# Points awarded for completing goals
DAILY_GOAL_POINTS = get_env_int("OMNIVAULT_DAILY_GOAL_POINTS", 10)
WEEKLY_GOAL_POINTS = get_env_int("OMNIVAULT_WEEKLY_GOAL_POINTS", 50)

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "WARNING")


def setup_logging() -> logging.Logger:
    """Configure and return logger."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, (LOG_LEVEL or "INFO").upper(), logging.INFO),
    )
    return logging.getLogger(__name__)


def validate_auth_environment() -> tuple[bool, str]:
    """
    Validate environment variables for remote authentication.

    Returns:
        (is_valid, message) - If not valid, message explains what's missing.
    """
    if not SUPABASE_URL or not SUPABASE_ANON_KEY:
        return (
            False,
            "Missing SUPABASE_URL or SUPABASE_ANON_KEY - running in offline mode",
        )

    return True, ""
