import sys
import time
import threading
from pathlib import Path
from typing import Callable, List, Tuple

import pytest

from mcwrap.config import WrapperSettings
from mcwrap.supervisor.escalation import EscalationState, ShutdownEscalator


class RecordingChild:
    """Stands in for ChildProcess and records what it was asked to do."""

    def __init__(self) -> None:
        self.commands: List[str] = []
        self.signals: List[int] = []
        self.writes: List[bytes] = []
        self._lock = threading.Lock()

    def send_command(self, text: str) -> None:
        with self._lock:
            self.commands.append(text)

    def send_signal(self, sig: int) -> None:
        with self._lock:
            self.signals.append(sig)

    def write(self, data: bytes) -> None:
        with self._lock:
            self.writes.append(data)


class ManualScheduler:
    """Collects re-attempts instead of arming timers; tests fire them explicitly."""

    def __init__(self) -> None:
        self.pending: List[Tuple[float, Callable[[], None]]] = []
        self.delays: List[float] = []
        self._lock = threading.Lock()

    def __call__(self, delay: float, callback: Callable[[], None]) -> None:
        with self._lock:
            self.pending.append((delay, callback))
            self.delays.append(delay)

    def fire_next(self):
        with self._lock:
            _, callback = self.pending.pop(0)
        return callback()


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def python_command(code: str) -> List[str]:
    """Builds argv that runs `code` in a fresh interpreter."""
    return [sys.executable, "-c", code]


def wait_for_file(path: Path, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not path.exists():
        if time.monotonic() > deadline:
            raise AssertionError(f"{path} was not created within {timeout}s")
        time.sleep(0.05)


@pytest.fixture()
def settings() -> WrapperSettings:
    # An empty environment isolates tests from the developer's MCWRAP_* variables.
    return WrapperSettings(environ={})


@pytest.fixture()
def child() -> RecordingChild:
    return RecordingChild()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def escalator(child, settings, scheduler, sleeper) -> ShutdownEscalator:
    return ShutdownEscalator(child, settings, state=EscalationState(), scheduler=scheduler, sleep=sleeper)
