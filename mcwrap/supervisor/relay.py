import sys
import logging
import threading
from typing import TYPE_CHECKING, BinaryIO, Optional

if TYPE_CHECKING:
    from mcwrap.supervisor.child import ChildProcess

log = logging.getLogger(__name__)


class InputRelay:
    """
    Copies the supervisor's stdin into the child's stdin, line by line and
    byte for byte, on a daemon thread. This is the operator's console channel
    to the wrapped server.
    """

    def __init__(self, child: "ChildProcess", source: Optional[BinaryIO] = None) -> None:
        """
        :param child: The process whose stdin receives the lines.
        :param source: Binary stream to read from. Defaults to the supervisor's stdin.
        """
        self.child = child
        if source is None and sys.stdin is not None:
            source = sys.stdin.buffer
        self.source = source
        self.lines_relayed = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        """Starts the relay thread and returns it."""
        self._thread = threading.Thread(target=self.run, daemon=True, name="InputRelayThread")
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        """Relays until end of input or a read error."""
        if self.source is None:
            log.debug("No input stream attached; console relay disabled.")
            return

        try:
            for line in iter(self.source.readline, b""):
                try:
                    self.child.write(line)
                    self.lines_relayed += 1
                except (OSError, ValueError) as e:
                    log.error(f"Error while writing to wrapped process: {e}")
        except (OSError, ValueError) as e:
            log.error(f"Error while reading from input: {e}")
            return
        log.debug("End of input reached; console relay stopped.")
