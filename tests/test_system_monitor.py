import subprocess
import threading
from zoneinfo import ZoneInfo

import pytest

from screentime.models import ScreenEvent
from screentime.session import SessionManager, SessionState
from screentime import system_monitor
from screentime.system_monitor import ScreenMonitor, classify_signal, detect_screen_locked


class FakeClock:
    def __init__(self, now: int = 1000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class ScriptedDetector:
    def __init__(self, locked: bool = False) -> None:
        self.locked = locked
        self.error: Exception | None = None

    def __call__(self) -> bool:
        if self.error is not None:
            raise self.error
        return self.locked


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[tuple[ScreenEvent, int | None]] = []

    def __call__(self, event: ScreenEvent, at: int | None) -> None:
        self.events.append((event, at))


def make_monitor(clock: FakeClock, detector: ScriptedDetector, sink) -> ScreenMonitor:
    return ScreenMonitor(sink=sink, detector=detector, clock=clock, poll_seconds=2, sleep_gap_seconds=60)


@pytest.mark.parametrize("name", ["lock", "sleep", "logout", "screensaver", " LOCK "])
def test_pause_signals(name: str) -> None:
    assert classify_signal(name) is ScreenEvent.PAUSE


@pytest.mark.parametrize("name", ["unlock", "wake", "login"])
def test_resume_signals(name: str) -> None:
    assert classify_signal(name) is ScreenEvent.RESUME


def test_unknown_signal_raises() -> None:
    with pytest.raises(ValueError):
        classify_signal("reboot")


def test_lock_transition_emits_pause_once() -> None:
    clock = FakeClock()
    detector = ScriptedDetector()
    sink = RecordingSink()
    monitor = make_monitor(clock, detector, sink)

    monitor.poll_once()
    detector.locked = True
    clock.now += 2
    monitor.poll_once()
    clock.now += 2
    monitor.poll_once()

    assert sink.events == [(ScreenEvent.PAUSE, 1002)]


def test_unlock_transition_emits_resume() -> None:
    clock = FakeClock()
    detector = ScriptedDetector(locked=True)
    sink = RecordingSink()
    monitor = make_monitor(clock, detector, sink)

    monitor.poll_once()
    detector.locked = False
    clock.now += 2
    events = monitor.poll_once()

    assert events == [(ScreenEvent.RESUME, 1002)]
    assert sink.events == [(ScreenEvent.PAUSE, 1000), (ScreenEvent.RESUME, 1002)]


def test_sleep_gap_pauses_at_last_tick_and_resumes() -> None:
    clock = FakeClock()
    detector = ScriptedDetector()
    sink = RecordingSink()
    monitor = make_monitor(clock, detector, sink)

    monitor.poll_once()
    clock.now += 3600
    events = monitor.poll_once()

    assert events == [(ScreenEvent.PAUSE, 1000), (ScreenEvent.RESUME, 4600)]


def test_sleep_gap_while_locked_does_not_resume() -> None:
    clock = FakeClock()
    detector = ScriptedDetector()
    sink = RecordingSink()
    monitor = make_monitor(clock, detector, sink)

    monitor.poll_once()
    detector.locked = True
    clock.now += 3600
    events = monitor.poll_once()

    assert events == [(ScreenEvent.PAUSE, 1000), (ScreenEvent.PAUSE, 4600)]


def test_detector_failure_keeps_previous_state() -> None:
    clock = FakeClock()
    detector = ScriptedDetector()
    sink = RecordingSink()
    monitor = make_monitor(clock, detector, sink)

    monitor.poll_once()
    detector.error = subprocess.TimeoutExpired(cmd="ps", timeout=5)
    clock.now += 2
    events = monitor.poll_once()

    assert events == []
    assert monitor.locked is False


def test_monitor_drives_session_manager() -> None:
    clock = FakeClock()
    detector = ScriptedDetector()
    manager = SessionManager(clock=clock, minimum_lap_seconds=3, timezone=ZoneInfo("UTC"))
    monitor = make_monitor(clock, detector, manager.handle_event)

    manager.start_day()
    monitor.poll_once()

    clock.now += 30
    detector.locked = True
    monitor.poll_once()
    assert manager.state is SessionState.PAUSED

    clock.now += 30
    detector.locked = False
    monitor.poll_once()
    assert manager.state is SessionState.ACTIVE

    clock.now += 3600
    monitor.poll_once()

    laps = manager.get_current_day_laps()
    assert [(lap.start_time, lap.end_time) for lap in laps] == [(1000, 1030), (4660, None)]
    assert manager.get_discarded_count() == 1


def fake_run(stdout: str):
    def run(args, **kwargs):
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")
    return run


def test_macos_matches_screensaver_by_full_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(system_monitor.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(system_monitor.subprocess, "run", fake_run(
        "COMM\n"
        "/sbin/launchd\n"
        "/System/Library/CoreServices/loginwindow.app/Contents/MacOS/loginwindow\n"
        "/System/Library/CoreServices/ScreenSaverEngine.app/Contents/MacOS/ScreenSaverEngine\n"
    ))

    assert detect_screen_locked() is True


@pytest.mark.parametrize("process", [
    "/Applications/Tools.app/Contents/MacOS/ScreenSaverEngineHelper",
    "/usr/local/bin/MyScreenSaverEngine",
    "/System/Library/CoreServices/loginwindow.app/Contents/MacOS/loginwindow",
])
def test_macos_ignores_lookalike_processes(monkeypatch: pytest.MonkeyPatch, process: str) -> None:
    monkeypatch.setattr(system_monitor.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(system_monitor.subprocess, "run", fake_run(f"COMM\n/sbin/launchd\n{process}\n"))

    assert detect_screen_locked() is False


@pytest.mark.parametrize("stdout, expected", [
    ("LockedHint=yes\n", True),
    ("LockedHint=no\n", False),
    ("", False),
])
def test_linux_reads_locked_hint(monkeypatch: pytest.MonkeyPatch, stdout: str, expected: bool) -> None:
    calls = []

    def run(args, **kwargs):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")

    monkeypatch.setattr(system_monitor.platform, "system", lambda: "Linux")
    monkeypatch.setattr(system_monitor.subprocess, "run", run)

    assert detect_screen_locked() is expected
    assert calls == [["loginctl", "show-session", "self", "--property=LockedHint"]]


def test_unknown_platform_is_never_locked(monkeypatch: pytest.MonkeyPatch) -> None:
    def run(args, **kwargs):
        raise AssertionError("no command should run")

    monkeypatch.setattr(system_monitor.platform, "system", lambda: "Windows")
    monkeypatch.setattr(system_monitor.subprocess, "run", run)

    assert detect_screen_locked() is False


def test_background_thread_survives_detector_errors_and_stops() -> None:
    polled_twice = threading.Event()
    calls = []

    def failing_detector() -> bool:
        calls.append(1)
        if len(calls) >= 2:
            polled_twice.set()
        raise RuntimeError("detector crashed")

    monitor = ScreenMonitor(
        sink=RecordingSink(), detector=failing_detector, clock=FakeClock(), poll_seconds=0, sleep_gap_seconds=60
    )

    monitor.start()
    assert polled_twice.wait(timeout=5)
    monitor.stop()

    assert len(calls) >= 2
    assert not monitor.is_running()
    assert monitor._thread is None


def test_delivered_events_are_classified_from_signal_names(monkeypatch: pytest.MonkeyPatch) -> None:
    names = []

    def recording_classify(name: str) -> ScreenEvent:
        names.append(name)
        return classify_signal(name)

    monkeypatch.setattr(system_monitor, "classify_signal", recording_classify)
    clock = FakeClock()
    detector = ScriptedDetector()
    monitor = make_monitor(clock, detector, RecordingSink())

    monitor.poll_once()
    clock.now += 10
    detector.locked = True
    monitor.poll_once()
    clock.now += 10
    detector.locked = False
    monitor.poll_once()
    clock.now += 600
    monitor.poll_once()

    assert names == ["lock", "unlock", "sleep", "wake"]
