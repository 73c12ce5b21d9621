"""
Configuration service for reading settings from environment.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger("app.config")


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self):
        self._cache: dict[str, Any] = {}

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get setting value from environment.

        Priority: Explicitly set value > Environment > Default
        """
        if key in self._cache:
            return self._cache[key]

        value = os.getenv(key, default)

        self._cache[key] = value

        logger.debug(f"Retrieved setting {key}={value}")
        return value

    def get_int(self, key: str, default: int) -> int:
        """Get setting as int, falling back to default on malformed values."""
        value = self.get_setting(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid integer setting {key}={value}, using {default}")
            return default

    def get_float(self, key: str, default: float) -> float:
        """Get setting as float, falling back to default on malformed values."""
        value = self.get_setting(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid float setting {key}={value}, using {default}")
            return default

    def set_setting(self, key: str, value: Any) -> None:
        """Override a setting for the lifetime of this process."""
        self._cache[key] = value
        logger.info(f"Set setting {key}={value}")

    def reset(self) -> None:
        """Drop cached settings so the environment is read again."""
        self._cache.clear()

    def now(self) -> datetime:
        """
        Get current time (real or fake based on APP_NOW_MODE).

        Returned as naive UTC to match the timestamp columns.

        Returns:
            Current datetime (real or fake)
        """
        fake_now = self.get_fake_time()
        if fake_now is not None:
            logger.debug(f"Using fake time: {fake_now}")
            return fake_now

        return datetime.now(timezone.utc).replace(tzinfo=None)

    def is_fake_time_enabled(self) -> bool:
        """Check if fake time mode is enabled."""
        return self.get_setting("APP_NOW_MODE", "real") == "fake"

    def get_fake_time(self) -> Optional[datetime]:
        """Get fake time if enabled, None otherwise."""
        if not self.is_fake_time_enabled():
            return None

        fake_now_str = self.get_setting("APP_FAKE_NOW")
        if fake_now_str:
            try:
                # Parse YYYY-MM-DD format
                return datetime.strptime(fake_now_str, "%Y-%m-%d")
            except ValueError:
                logger.warning(f"Invalid APP_FAKE_NOW format: {fake_now_str}, using real time")

        return None


# Global instance
config_service = ConfigService()
