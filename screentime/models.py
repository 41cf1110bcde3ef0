"""Data models for laps, day records, and status snapshots"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class ScreenEvent(Enum):
    """Logical signal delivered by the lock/sleep/login detector"""
    PAUSE = "pause"
    RESUME = "resume"


@dataclass(frozen=True)
class OpenLap:
    """A lap that is still accumulating time"""
    start_time: int

    is_open = True

    @property
    def end_time(self) -> Optional[int]:
        return None

    @property
    def duration(self) -> Optional[int]:
        return None

    def elapsed(self, now: int) -> int:
        """Seconds since the lap started"""
        return max(0, now - self.start_time)

    def close(self, now: int) -> 'ClosedLap':
        """Close the lap at the given time; an end before the start counts as zero"""
        end = max(now, self.start_time)
        return ClosedLap(
            start_time=self.start_time,
            end_time=end,
            duration=end - self.start_time
        )

    def to_dict(self) -> Dict[str, int]:
        return {'start_time': self.start_time}


@dataclass(frozen=True)
class ClosedLap:
    """A finished lap"""
    start_time: int
    end_time: int
    duration: int

    is_open = False

    def to_dict(self) -> Dict[str, int]:
        return {
            'start_time': self.start_time,
            'end_time': self.end_time,
            'duration': self.duration
        }


Lap = Union[OpenLap, ClosedLap]


@dataclass(frozen=True)
class DayRecord:
    """Snapshot of all laps for one tracked day"""
    day_key: str
    laps: Tuple[Lap, ...]
    total_duration: int
    is_active: bool

    @property
    def date(self) -> str:
        return self.day_key

    @property
    def lap_count(self) -> int:
        """Number of completed laps"""
        return sum(1 for lap in self.laps if not lap.is_open)

    def to_dict(self) -> Dict:
        return {
            'date': self.day_key,
            'total_duration': self.total_duration,
            'laps': [lap.to_dict() for lap in self.laps],
            'is_active': self.is_active
        }


@dataclass(frozen=True)
class CurrentStatus:
    """Read-only view of the live day, computed on demand"""
    day_key: str
    current_lap_duration: int
    total_session_duration: int
    is_active: bool

    @property
    def closed_duration(self) -> int:
        """Total excluding the running lap"""
        return self.total_session_duration - self.current_lap_duration
