"""
Shutdown escalation for the supervised process.

Every shutdown request, whether it comes from a signal or from the timer armed
by an earlier request, calls `ShutdownEscalator.trigger`. Each call moves the
shared `EscalationState` forward by exactly one stage and performs that stage's
action: the console stop command, then SIGTERM, then SIGKILL. Non-terminal
stages arm a timer that calls `trigger` again, so an unresponsive process is
always killed eventually.
"""
import time
import psutil
import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

from mcwrap.supervisor.stages import ACTION_WRITE, ShutdownStage, StageAction, stage_action

if TYPE_CHECKING:
    from mcwrap.config import WrapperSettings
    from mcwrap.supervisor.child import ChildProcess

log = logging.getLogger(__name__)

# Failures a stage action may hit against a live, exiting or exited process.
ACTION_ERRORS = (OSError, ValueError, psutil.Error)

Scheduler = Callable[[float, Callable[[], None]], None]


def schedule_later(delay: float, callback: Callable[[], None]) -> None:
    """Runs `callback` on a daemon timer thread after `delay` seconds. Fire-and-forget."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.name = "ShutdownReattemptTimer"
    timer.start()


class EscalationState:
    """The current shutdown stage, advanced atomically by concurrent triggers."""

    def __init__(self) -> None:
        self._stage = ShutdownStage.NONE
        self._lock = threading.Lock()

    @property
    def stage(self) -> ShutdownStage:
        with self._lock:
            return self._stage

    def advance(self) -> Optional[ShutdownStage]:
        """
        Moves to the next stage in a single locked read-modify-write.

        :return: The stage the caller now owns, or None if `KILLING` was already reached.
        """
        with self._lock:
            if self._stage.is_terminal:
                return None
            self._stage = ShutdownStage(self._stage + 1)
            return self._stage


class ShutdownEscalator:
    """
    Drives the escalation sequence against a single child process.

    :param child: The process handle that receives commands and signals.
    :param settings: Effective settings (commands and waits).
    :param state: Shared stage cell. A fresh one is created when omitted.
    :param scheduler: Callable ``(delay, callback)`` used to arm re-attempts.
    :param sleep: Blocking sleep used by the notification countdown.
    """

    def __init__(self, child: "ChildProcess", settings: "WrapperSettings",
                 state: Optional[EscalationState] = None,
                 scheduler: Scheduler = schedule_later,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.child = child
        self.settings = settings
        self.state = state if state is not None else EscalationState()
        self._schedule = scheduler
        self._sleep = sleep

    @property
    def stage(self) -> ShutdownStage:
        return self.state.stage

    def trigger(self) -> Optional[ShutdownStage]:
        """
        Advances the shutdown by one stage and performs that stage's action.
        Safe to call any number of times from any thread.

        :return: The stage this call acted on, or None when the sequence was already complete.
        """
        stage = self.state.advance()
        if stage is None:
            return None

        action = stage_action(stage, self.settings)
        self._perform(action)

        if action.wait is not None:
            log.debug(f"Next shutdown attempt in {action.wait}s if the process is still running.")
            self._schedule(action.wait, self.trigger)
        return stage

    def _perform(self, action: StageAction) -> None:
        if action.kind == ACTION_WRITE:
            log.info(f"Trying to shut down gracefully with '{action.payload}'.")
        elif action.stage.is_terminal:
            log.warning("Trying to kill the process.")
        else:
            log.info("Trying to shut down with SIGTERM.")

        try:
            if action.kind == ACTION_WRITE:
                self.child.send_command(action.payload)
            else:
                self.child.send_signal(action.payload)
        except ACTION_ERRORS as e:
            level = logging.CRITICAL if action.stage.is_terminal else logging.ERROR
            log.log(level, f"Error during shutdown stage {action.stage.name}: {e}")

    def notification_text(self) -> str:
        """
        Renders the notification command for the configured countdown.
        A template that does not take one integer is sent as-is.
        """
        template = self.settings.NOTIFY_CMD
        try:
            return template % int(self.settings.NOTIFY_WAIT)
        except (TypeError, ValueError) as e:
            log.warning(f"Notification template '{template}' does not accept a countdown ({e}); sending it verbatim.")
            return template

    def notify_then_shutdown(self) -> Optional[ShutdownStage]:
        """
        Announces the shutdown to the process, waits out the countdown, then
        triggers the escalation once.

        :return: Whatever the resulting `trigger` call returned.
        """
        text = self.notification_text()
        log.info(f"Announcing shutdown in {self.settings.NOTIFY_WAIT}s.")
        try:
            self.child.send_command(text)
        except ACTION_ERRORS as e:
            log.error(f"Error while sending shutdown notification: {e}")

        self._sleep(self.settings.NOTIFY_WAIT)
        return self.trigger()
