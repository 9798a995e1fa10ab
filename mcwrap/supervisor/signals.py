import signal
import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from mcwrap.supervisor.escalation import ShutdownEscalator

log = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], Any], str], None]

# Signal number -> name of the escalator entry point it starts.
ROUTES: Dict[int, str] = {
    signal.SIGINT: "trigger",
    signal.SIGTERM: "trigger",
    signal.SIGUSR1: "notify_then_shutdown",
}


def dispatch_in_thread(target: Callable[[], Any], name: str) -> None:
    """Runs `target` on a new daemon thread so the signal handler returns immediately."""
    threading.Thread(target=target, daemon=True, name=name).start()


class SignalListener:
    """
    Maps OS signals onto the two shutdown entry points:

    - SIGINT, SIGTERM: start (or advance) the escalation right away.
    - SIGUSR1: announce the shutdown first, then escalate.

    The handler never performs a write or a signal itself; every delivery is
    handed to its own thread, so a burst of signals is neither dropped nor
    queued behind a slow stdin write.

    The listener may be installed before the escalator exists (that is, before
    the child is launched). Signals received until `attach` are held and
    dispatched once it is called.
    """

    def __init__(self, escalator: Optional["ShutdownEscalator"] = None,
                 dispatch: Dispatcher = dispatch_in_thread) -> None:
        self.escalator = escalator
        self._dispatch = dispatch
        self._previous: Dict[int, Any] = {}
        self._pending: List[int] = []

    def install(self) -> None:
        """Installs the handlers. Must be called from the main thread."""
        for signum in ROUTES:
            self._previous[signum] = signal.signal(signum, self.handle)
        log.debug("Shutdown signal handlers installed.")

    def uninstall(self) -> None:
        """Restores whatever handlers were active before `install`."""
        for signum, previous in self._previous.items():
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()

    def attach(self, escalator: "ShutdownEscalator") -> None:
        """Connects the escalator and dispatches any signals received before it existed."""
        self.escalator = escalator
        while self._pending:
            self._dispatch_signal(self._pending.pop(0))

    def handle(self, signum: int, frame: Any = None) -> None:
        if signum not in ROUTES:
            return
        log.info(f"Received {signal.Signals(signum).name}.")
        if self.escalator is None:
            self._pending.append(signum)
            return
        self._dispatch_signal(signum)

    def _dispatch_signal(self, signum: int) -> None:
        target = getattr(self.escalator, ROUTES[signum])
        self._dispatch(target, f"{signal.Signals(signum).name}Handler")
