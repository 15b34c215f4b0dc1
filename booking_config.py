"""
Configuration and logging setup for the event booking manager.

Settings are read from environment variables once, at import time.
Defaults are provided for every field so the system runs out of the box.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# ============================================================================
# CONSTANTS
# ============================================================================

USERS_FILENAME = "users.txt"
EVENTS_FILENAME = "events.txt"
BOOKINGS_FILENAME = "bookings.txt"

MIN_EVENT_YEAR = 2025
DATE_FORMAT_HINT = "DD-MM-YYYY"
DEFAULT_TIER_NAME = "Standard"

STATUS_CONFIRMED = "Confirmed"
STATUS_CANCELLED = "Cancelled"

DEFAULT_WEB_PORT = 5000

logger = logging.getLogger(__name__)


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
        return default


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    data_dir: str = os.getenv("BOOKING_DATA_DIR", "data")
    admin_username: str = os.getenv("BOOKING_ADMIN_USER", "admin")
    admin_password: str = os.getenv("BOOKING_ADMIN_PASSWORD", "admin123")
    log_level: str = os.getenv("BOOKING_LOG_LEVEL", "WARNING")
    log_file: str = os.getenv("BOOKING_LOG_FILE", "")
    web_host: str = os.getenv("BOOKING_WEB_HOST", "127.0.0.1")
    web_port: int = env_int("BOOKING_WEB_PORT", DEFAULT_WEB_PORT)
    secret_key: str = os.getenv("BOOKING_SECRET_KEY", "event-booking-dev-secret")


settings = Settings()


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger.

    A console handler is always attached, a file handler only when
    ``logfile`` is given. Calling this again once handlers exist does
    nothing.
    """
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
