"""Lap sequence bookkeeping and duration arithmetic for one day"""

import logging
from typing import List, Optional, Tuple

from .errors import InvalidStateError, NoOpenLapError
from .models import ClosedLap, CurrentStatus, Lap, OpenLap

logger = logging.getLogger(__name__)

# Laps shorter than this are lock/unlock flicker and are dropped
MINIMUM_LAP_SECONDS = 3


class LapTracker:
    """Owns the ordered laps of a day; at most one open lap, always last"""

    def __init__(self, minimum_lap_seconds: int = MINIMUM_LAP_SECONDS):
        self.minimum_lap_seconds = minimum_lap_seconds
        self._closed: List[ClosedLap] = []
        self._open: Optional[OpenLap] = None
        self._total = 0
        self.discarded_count = 0

    @property
    def has_open_lap(self) -> bool:
        return self._open is not None

    def open_lap(self, now: int) -> OpenLap:
        """
        Start a new lap

        Args:
            now: Start timestamp in epoch seconds

        Returns:
            The opened lap
        """
        if self._open is not None:
            raise InvalidStateError("A lap is already running. Close it first.")

        # Never overlap the previous lap, even if the clock stepped backwards
        if self._closed and now < self._closed[-1].end_time:
            logger.warning(
                "Clock went backwards (%s < %s); clamping lap start",
                now, self._closed[-1].end_time
            )
            now = self._closed[-1].end_time

        self._open = OpenLap(start_time=now)
        return self._open

    def close_lap(self, now: int) -> bool:
        """
        Close the running lap

        Args:
            now: End timestamp in epoch seconds

        Returns:
            True if the lap was kept, False if it was too short and discarded
        """
        if self._open is None:
            raise NoOpenLapError("No lap is running")

        lap = self._open.close(now)
        self._open = None

        if lap.duration < self.minimum_lap_seconds:
            self.discarded_count += 1
            logger.debug(
                "Discarded %ss lap started at %s (minimum %ss)",
                lap.duration, lap.start_time, self.minimum_lap_seconds
            )
            return False

        self._closed.append(lap)
        self._total += lap.duration
        return True

    def total_duration(self) -> int:
        """Sum of closed lap durations"""
        return self._total

    def current_status(self, day_key: str, now: int) -> CurrentStatus:
        current = self._open.elapsed(now) if self._open else 0
        return CurrentStatus(
            day_key=day_key,
            current_lap_duration=current,
            total_session_duration=self._total + current,
            is_active=self._open is not None
        )

    def laps_snapshot(self) -> Tuple[Lap, ...]:
        """Immutable copy of the laps, open lap last"""
        if self._open is None:
            return tuple(self._closed)
        return tuple(self._closed) + (self._open,)
