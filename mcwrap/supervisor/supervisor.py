import time
import logging
from typing import BinaryIO, List, Optional

from mcwrap.config import WrapperSettings
from mcwrap.exceptions import AbnormalExitError, LaunchError
from mcwrap.supervisor.child import ChildProcess
from mcwrap.supervisor.relay import InputRelay
from mcwrap.supervisor.signals import SignalListener
from mcwrap.supervisor.escalation import EscalationState, Scheduler, ShutdownEscalator, schedule_later

log = logging.getLogger(__name__)


class Supervisor:
    """
    Runs one child process for its whole lifetime: launches it, relays the
    operator's console input to it, turns shutdown signals into escalation
    steps and reports how it exited.
    """

    def __init__(self, argv: List[str], settings: Optional[WrapperSettings] = None,
                 stdin: Optional[BinaryIO] = None, install_signals: bool = True,
                 scheduler: Scheduler = schedule_later) -> None:
        """
        :param argv: The executable to supervise followed by its arguments.
        :param settings: Effective settings. Loaded from the environment when None.
        :param stdin: Console input to relay. Defaults to the supervisor's own stdin.
        :param install_signals: Whether to install the SIGINT/SIGTERM/SIGUSR1 handlers.
        :param scheduler: Used by the escalator to arm re-attempts.
        """
        self.argv = list(argv)
        self.settings = settings if settings is not None else WrapperSettings()
        self.state = EscalationState()
        self._stdin = stdin
        self._install_signals = install_signals
        self._scheduler = scheduler

        self.child: Optional[ChildProcess] = None
        self.escalator: Optional[ShutdownEscalator] = None
        self.relay: Optional[InputRelay] = None
        self.listener: Optional[SignalListener] = None
        self.start_time: Optional[float] = None

    def start(self) -> ChildProcess:
        """
        Installs signal handling, launches the child and starts the relay.
        Shutdown signals received while the child is starting are acted on
        as soon as it runs.

        :return ChildProcess: The running child.
        :raises LaunchError: If the child cannot be started.
        """
        if self._install_signals:
            self.listener = SignalListener()
            self.listener.install()

        try:
            self.child = ChildProcess.launch(self.argv)
        except LaunchError:
            if self.listener is not None:
                self.listener.uninstall()
            raise
        self.start_time = time.time()
        self.escalator = ShutdownEscalator(self.child, self.settings, state=self.state, scheduler=self._scheduler)

        self.relay = InputRelay(self.child, self._stdin)
        self.relay.start()

        if self.listener is not None:
            self.listener.attach(self.escalator)
        return self.child

    def wait(self) -> int:
        """
        Blocks until the child exits.

        :return int: 0 for a clean exit.
        :raises AbnormalExitError: If the child exited non-zero or was killed by a signal.
        """
        if self.child is None:
            raise RuntimeError("Supervisor.wait() called before start().")
        try:
            returncode = self.child.wait()
        finally:
            if self.listener is not None:
                self.listener.uninstall()

        runtime = time.strftime('%H:%M:%S', time.gmtime(time.time() - (self.start_time or time.time())))
        if returncode != 0:
            log.critical(f"{self.child.name} exited abnormally with code {returncode} "
                         f"(shutdown stage: {self.state.stage.name}, runtime {runtime}).")
            raise AbnormalExitError(returncode)

        log.info(f"{self.child.name} exited cleanly after {runtime}.")
        return returncode

    def run(self) -> int:
        """Starts the child and waits for it. See `start` and `wait`."""
        self.start()
        return self.wait()
