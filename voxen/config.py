"""
Runtime configuration for the Voxen client.
Values come from the .env file in the project root, then from the process environment.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env defaults without overriding variables provided by the platform
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path, override=False)

MB = 1024 * 1024


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger("voxen.config").warning(f"[CONFIG] Invalid integer for {name}: {raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger("voxen.config").warning(f"[CONFIG] Invalid number for {name}: {raw!r}, using {default}")
        return default


class Settings:
    """Client settings read from the environment at construction time"""

    def __init__(self):
        # Gateway
        self.API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
        self.GATEWAY_MODE: str = os.getenv("GATEWAY_MODE", "http").lower()
        self.HTTP_TIMEOUT: float = _env_float("HTTP_TIMEOUT", 60.0)
        self.HTTP_CONNECT_TIMEOUT: float = _env_float("HTTP_CONNECT_TIMEOUT", 15.0)
        self.HTTP2_ENABLED: bool = _env_bool("HTTP2_ENABLED", "True")

        # Reconciliation
        self.MESSAGE_FETCH_LIMIT: int = _env_int("MESSAGE_FETCH_LIMIT", 100)

        # Upload ceilings per slot
        self.MAX_AVATAR_BYTES: int = _env_int("MAX_AVATAR_BYTES", 10 * MB)
        self.MAX_BACKGROUND_BYTES: int = _env_int("MAX_BACKGROUND_BYTES", 100 * MB)
        self.MAX_ATTACHMENT_BYTES: int = _env_int("MAX_ATTACHMENT_BYTES", 600 * MB)
        self.UPLOAD_CHUNK_SIZE: int = _env_int("UPLOAD_CHUNK_SIZE", 1 * MB)

        # Development
        self.DEBUG: bool = _env_bool("DEBUG")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        if self.GATEWAY_MODE not in ("http", "memory"):
            raise ValueError(f"GATEWAY_MODE must be 'http' or 'memory', got {self.GATEWAY_MODE!r}")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the cached settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment"""
    global _settings
    _settings = None


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the package logger and return it"""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL, logging.INFO)

    logger = logging.getLogger("voxen")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.debug(f"[CONFIG] Gateway mode: {settings.GATEWAY_MODE}, API: {settings.API_BASE_URL}")
    return logger
