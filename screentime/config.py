"""Configuration management for Screen Time Tracker"""

import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


class Config:
    """Application configuration loaded from .env and environment variables"""

    def __init__(self, env_path: Optional[Path] = None):
        # Load .env file from project root
        env_path = env_path or Path(__file__).parent.parent / '.env'
        load_dotenv(env_path)

        # Lap rules
        self.minimum_lap_seconds = self._parse_int('MINIMUM_LAP_SECONDS', '3')

        # Polling intervals
        self.status_refresh_seconds = self._parse_int('STATUS_REFRESH_SECONDS', '1', positive=True)
        self.lock_poll_seconds = self._parse_int('LOCK_POLL_SECONDS', '2', positive=True)
        self.sleep_gap_seconds = self._parse_int('SLEEP_GAP_SECONDS', '60', positive=True)

        # Behavior
        self.auto_pause_on_lock = self._parse_bool(os.getenv('AUTO_PAUSE_ON_LOCK', 'true'))
        self.timezone = self._parse_timezone(os.getenv('TIMEZONE', ''))
        self.log_level = self._parse_log_level(os.getenv('LOG_LEVEL', 'WARNING'))

    def _parse_int(self, name: str, default: str, positive: bool = False) -> int:
        """Parse an integer environment variable"""
        raw = os.getenv(name, default).strip()
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"Invalid value for {name}: {raw}. Expected an integer")

        if value < 0 or (positive and value == 0):
            kind = "positive" if positive else "non-negative"
            raise ValueError(f"{name} must be {kind}, got {value}")
        return value

    def _parse_log_level(self, value: str) -> str:
        """Parse a logging level name"""
        level = value.strip().upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Invalid log level: {value}")
        return level

    def _parse_bool(self, value: str) -> bool:
        """Parse boolean string"""
        return value.lower() in ('true', '1', 'yes', 'on')

    def _parse_timezone(self, name: str) -> Optional[ZoneInfo]:
        """Parse an IANA timezone name; empty means the machine's local time"""
        name = name.strip()
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid timezone: {name}")

    def timezone_name(self) -> str:
        """Human readable timezone for display"""
        return self.timezone.key if self.timezone else "local"


# Global config instance
config = Config()
