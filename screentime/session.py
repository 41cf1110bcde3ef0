"""Day-level session management with lock-driven pause and resume"""

import logging
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

from .config import config
from .errors import InvalidStateError, NoOpenLapError
from .laps import LapTracker
from .models import CurrentStatus, DayRecord, Lap, ScreenEvent

logger = logging.getLogger(__name__)


def epoch_seconds() -> int:
    return int(time.time())


class SessionState(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    PAUSED = "paused"


class SessionManager:
    """Tracks one day of screen time, split into laps by lock/unlock events

    Every public method takes the same lock, so monitor events, manual
    commands and status polls are applied one at a time.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        minimum_lap_seconds: Optional[int] = None,
        timezone: Optional[ZoneInfo] = None
    ):
        self._clock = clock or epoch_seconds
        self.minimum_lap_seconds = (
            config.minimum_lap_seconds if minimum_lap_seconds is None else minimum_lap_seconds
        )
        self.timezone = timezone
        self._lock = threading.Lock()
        self._day_key: Optional[str] = None
        self._laps: Optional[LapTracker] = None

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state()

    @property
    def day_key(self) -> Optional[str]:
        with self._lock:
            return self._day_key

    def _state(self) -> SessionState:
        if self._laps is None:
            return SessionState.NOT_STARTED
        if self._laps.has_open_lap:
            return SessionState.ACTIVE
        return SessionState.PAUSED

    def _day_key_for(self, now: int) -> str:
        return datetime.fromtimestamp(now, tz=self.timezone).date().isoformat()

    def _resolve_time(self, at: Optional[int]) -> int:
        """Use a back-dated timestamp when given, never one in the future"""
        now = self._clock()
        if at is None:
            return now
        return min(at, now)

    def start_day(self) -> str:
        """
        Start tracking a new day with its first lap running

        Returns:
            The day key (YYYY-MM-DD)
        """
        with self._lock:
            if self._laps is not None:
                raise InvalidStateError(
                    f"Already tracking {self._day_key}. End the day first."
                )

            now = self._clock()
            laps = LapTracker(self.minimum_lap_seconds)
            laps.open_lap(now)

            self._laps = laps
            self._day_key = self._day_key_for(now)
            logger.info("Day %s started at %s", self._day_key, now)
            return self._day_key

    def end_day(self) -> DayRecord:
        """
        Close the running lap, if any, and finalize the day

        Returns:
            Final DayRecord; internal state is cleared afterwards
        """
        with self._lock:
            if self._laps is None:
                raise InvalidStateError("No active day to end")

            now = self._clock()
            if self._laps.has_open_lap:
                self._laps.close_lap(now)

            record = DayRecord(
                day_key=self._day_key,
                laps=self._laps.laps_snapshot(),
                total_duration=self._laps.total_duration(),
                is_active=False
            )

            logger.info(
                "Day %s ended: %d laps, %ss total",
                record.day_key, len(record.laps), record.total_duration
            )
            self._laps = None
            self._day_key = None
            return record

    def add_lap(self) -> None:
        """Start a new lap, closing the running one first"""
        with self._lock:
            if self._laps is None:
                raise InvalidStateError("No active day")

            now = self._clock()
            if self._laps.has_open_lap:
                self._laps.close_lap(now)
            self._laps.open_lap(now)
            logger.info("New lap started at %s", now)

    def stop_lap(self) -> str:
        """Close the running lap without starting another"""
        with self._lock:
            if self._laps is None:
                raise InvalidStateError("No active day")
            if not self._laps.has_open_lap:
                raise NoOpenLapError("No lap is running")

            return self._pause(self._clock(), "Lap stopped")

    def handle_screen_lock(self, at: Optional[int] = None) -> str:
        """Pause signal: lock, sleep or logout"""
        with self._lock:
            if self._laps is None:
                return "No active session"
            if not self._laps.has_open_lap:
                logger.debug("Pause ignored: already paused")
                return "Already paused"

            return self._pause(self._resolve_time(at), "Screen locked - timer paused")

    def handle_screen_unlock(self, at: Optional[int] = None) -> str:
        """Resume signal: unlock, wake or login"""
        with self._lock:
            if self._laps is None:
                return "No active session"
            if self._laps.has_open_lap:
                logger.debug("Resume ignored: lap already running")
                return "Already running"

            now = self._resolve_time(at)
            self._laps.open_lap(now)
            logger.info("Resumed at %s", now)
            return "Screen unlocked - new lap started"

    def handle_event(self, event: ScreenEvent, at: Optional[int] = None) -> str:
        """Apply a classified monitor event"""
        if event is ScreenEvent.PAUSE:
            return self.handle_screen_lock(at)
        return self.handle_screen_unlock(at)

    def _pause(self, now: int, message: str) -> str:
        kept = self._laps.close_lap(now)
        logger.info("Paused at %s (lap %s)", now, "kept" if kept else "discarded")
        if not kept:
            return f"{message} (lap under {self.minimum_lap_seconds}s discarded)"
        return message

    def get_current_status(self) -> Optional[CurrentStatus]:
        """Live status, or None when no day is being tracked"""
        with self._lock:
            if self._laps is None:
                return None
            return self._laps.current_status(self._day_key, self._clock())

    def get_current_day_laps(self) -> Tuple[Lap, ...]:
        """Laps of the live day, empty when no day is being tracked"""
        with self._lock:
            if self._laps is None:
                return ()
            return self._laps.laps_snapshot()

    def get_discarded_count(self) -> int:
        """Laps dropped today for being shorter than the minimum"""
        with self._lock:
            if self._laps is None:
                return 0
            return self._laps.discarded_count


# Global session manager instance
session_manager = SessionManager(timezone=config.timezone)
