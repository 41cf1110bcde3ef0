"""System monitoring for lock, sleep and wake detection"""

import logging
import platform
import subprocess
import threading
import time
from typing import Callable, List, Optional, Tuple

from .models import ScreenEvent

logger = logging.getLogger(__name__)

PAUSE_SIGNALS = frozenset({'lock', 'sleep', 'logout', 'screensaver'})
RESUME_SIGNALS = frozenset({'unlock', 'wake', 'login'})

DETECTOR_TIMEOUT_SECONDS = 5


def classify_signal(name: str) -> ScreenEvent:
    """Map a raw OS signal name to pause or resume

    Every event the monitor delivers goes through here, and so should any
    other detector that reports named signals.
    """
    key = name.strip().lower()
    if key in PAUSE_SIGNALS:
        return ScreenEvent.PAUSE
    if key in RESUME_SIGNALS:
        return ScreenEvent.RESUME
    raise ValueError(f"Unknown screen signal: {name}")


def _macos_locked() -> bool:
    result = subprocess.run(
        ['ps', '-axo', 'comm'],
        capture_output=True, text=True, timeout=DETECTOR_TIMEOUT_SECONDS
    )
    for line in result.stdout.splitlines():
        process = line.strip().rsplit('/', 1)[-1]
        if process == 'ScreenSaverEngine':
            return True
    return False


def _linux_locked() -> bool:
    result = subprocess.run(
        ['loginctl', 'show-session', 'self', '--property=LockedHint'],
        capture_output=True, text=True, timeout=DETECTOR_TIMEOUT_SECONDS
    )
    return result.stdout.strip().lower() == 'lockedhint=yes'


def detect_screen_locked() -> bool:
    """Best-effort check whether the screen is locked right now"""
    system = platform.system()
    if system == 'Darwin':
        return _macos_locked()
    if system == 'Linux':
        return _linux_locked()
    return False


class ScreenMonitor:
    """Polls the lock detector and the tick gap, and reports pause/resume"""

    def __init__(
        self,
        sink: Callable[[ScreenEvent, Optional[int]], object],
        detector: Callable[[], bool] = detect_screen_locked,
        clock: Callable[[], int] = lambda: int(time.time()),
        poll_seconds: int = 2,
        sleep_gap_seconds: int = 60
    ):
        self.sink = sink
        self.detector = detector
        self.clock = clock
        self.poll_seconds = poll_seconds
        self.sleep_gap_seconds = sleep_gap_seconds

        self.locked = False
        self.last_tick: Optional[int] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> List[Tuple[ScreenEvent, int]]:
        """
        Run one detection round

        Returns:
            Events delivered to the sink, with their timestamps
        """
        now = self.clock()
        events: List[Tuple[ScreenEvent, int]] = []

        # A tick far later than expected means the machine was asleep
        slept = self.last_tick is not None and now - self.last_tick > self.sleep_gap_seconds
        if slept:
            logger.info("Sleep gap of %ss detected", now - self.last_tick)
            events.append((classify_signal('sleep'), self.last_tick))

        try:
            locked = self.detector()
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Lock detection failed: %s", e)
            locked = self.locked

        if locked and not self.locked:
            events.append((classify_signal('lock'), now))
        elif not locked and self.locked:
            events.append((classify_signal('unlock'), now))
        elif not locked and slept:
            events.append((classify_signal('wake'), now))

        self.locked = locked
        self.last_tick = now

        for event, at in events:
            logger.debug("Delivering %s at %s", event.value, at)
            self.sink(event, at)
        return events

    def _run(self):
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Screen monitor poll failed")
            self._stop.wait(self.poll_seconds)

    def start(self):
        """Start polling on a background thread"""
        if self.is_running():
            return
        self._stop.clear()
        self.last_tick = None
        self._thread = threading.Thread(target=self._run, name='screen-monitor', daemon=True)
        self._thread.start()
        logger.info("Screen monitor started (every %ss)", self.poll_seconds)

    def stop(self):
        """Stop the background thread"""
        self._stop.set()
        if self._thread:
            # A poll may be blocked on the detector subprocess
            self._thread.join(timeout=self.poll_seconds + DETECTOR_TIMEOUT_SECONDS + 1)
            if self._thread.is_alive():
                logger.warning("Screen monitor thread did not stop in time")
                return
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
