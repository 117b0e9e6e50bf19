"""Application configuration and constants."""
import logging
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_log_level(name: str, default: int) -> int:
    """Parse a logging level name (DEBUG, INFO, ...) from environment."""
    raw = os.environ.get(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'certprep.db'}"
)

# Authentication
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = _parse_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
SESSION_EXTEND_MINUTES = _parse_int_env("SESSION_EXTEND_MINUTES", 60)
SESSION_CLEANUP_INTERVAL_SECONDS = _parse_int_env(
    "SESSION_CLEANUP_INTERVAL_SECONDS", 6 * 60 * 60
)

# Exams
DEFAULT_EXAM_DURATION_MINUTES = _parse_int_env("DEFAULT_EXAM_DURATION_MINUTES", 30)
DEFAULT_PASSING_SCORE = _parse_int_env("DEFAULT_PASSING_SCORE", 70)

# Analytics
HEATMAP_DAYS = _parse_int_env("HEATMAP_DAYS", 365)
DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "+00:00")
RECENT_ACTIVITY_LIMIT = 5

# Logging
LOG_LEVEL = _parse_log_level("LOG_LEVEL", logging.INFO)
