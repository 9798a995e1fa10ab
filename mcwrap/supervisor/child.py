import os
import sys
import psutil
import logging
import threading
import subprocess
from typing import Any, Dict, List, Optional

from mcwrap.exceptions import LaunchError

log = logging.getLogger(__name__)


def _get_popen_kwargs() -> Dict[str, Any]:
    """
    Returns platform-specific keyword arguments for subprocess.Popen.

    The child gets its own session so terminal-generated signals (Ctrl+C) reach
    only the supervisor, which then decides how to shut the child down.
    """
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


class ChildProcess:
    """
    Handle to the single supervised process.

    Owns the write end of the child's stdin; stdout and stderr are inherited
    from the supervisor. All writers share one lock so each write call lands
    as one contiguous chunk.
    """

    def __init__(self, popen: subprocess.Popen, argv: List[str]) -> None:
        self._popen = popen
        self.argv = list(argv)
        self._write_lock = threading.Lock()
        try:
            self._proc: Optional[psutil.Process] = psutil.Process(popen.pid)
        except psutil.NoSuchProcess:
            # Exited before we could attach; wait() still reports its status.
            self._proc = None

    @classmethod
    def launch(cls, argv: List[str], env: Optional[Dict[str, str]] = None) -> "ChildProcess":
        """
        Starts the executable with a pipe on its stdin.

        :param argv: The executable followed by its arguments.
        :param env: Environment for the child. Inherits the supervisor's when None.
        :return ChildProcess: A handle to the running process.
        :raises LaunchError: If the process could not be started.
        """
        if not argv:
            raise LaunchError("No command given to launch.")

        log.info(f"Starting process: {' '.join(argv)}")
        try:
            popen = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=None,
                stderr=None,
                bufsize=0,
                env=env,
                **_get_popen_kwargs(),
            )
        except (OSError, ValueError) as e:
            log.critical(f"Failed to start process '{argv[0]}': {e}")
            raise LaunchError(f"Failed to start '{argv[0]}': {e}") from e

        child = cls(popen, argv)
        log.info(f"{child.name} started successfully with PID: {popen.pid}")
        return child

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def name(self) -> str:
        return os.path.basename(self.argv[0])

    @property
    def returncode(self) -> Optional[int]:
        return self._popen.returncode

    def is_running(self) -> bool:
        """Returns True while the process exists and is not a zombie."""
        if self._proc is None or self._popen.returncode is not None:
            return False
        try:
            return self._proc.is_running() and self._proc.status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False

    def write(self, data: bytes) -> None:
        """
        Writes raw bytes to the child's stdin as one uninterrupted chunk.

        :param data: The bytes to write.
        :raises ValueError: If stdin has already been closed.
        :raises OSError: If the pipe is broken or the write fails.
        """
        with self._write_lock:
            stdin = self._popen.stdin
            if stdin is None or stdin.closed:
                raise ValueError("stdin of the supervised process is closed")
            view = memoryview(data)
            while view:
                written = stdin.write(view)
                view = view[written:]

    def send_command(self, text: str) -> None:
        """Writes a console command, framed by newlines so a half-typed line cannot swallow it."""
        self.write(f"\n{text}\n".encode("utf-8"))

    def send_signal(self, sig: int) -> None:
        """
        Delivers a signal to the child. Safe to call concurrently.

        :param sig: The signal number.
        :raises psutil.NoSuchProcess: If the process is gone (or its pid was reused).
        """
        if self._proc is None:
            raise psutil.NoSuchProcess(self.pid, msg="process exited before it could be attached")
        log.debug(f"Sending signal {sig} to {self.name} (PID {self.pid})")
        self._proc.send_signal(sig)

    def close_stdin(self) -> None:
        with self._write_lock:
            stdin = self._popen.stdin
            if stdin is not None and not stdin.closed:
                try:
                    stdin.close()
                except OSError as e:
                    log.debug(f"Error while closing stdin of {self.name}: {e}")

    def wait(self) -> int:
        """
        Blocks until the child exits, then closes its stdin.

        :return int: The exit code. Negative values mean death by that signal.
        """
        returncode = self._popen.wait()
        self.close_stdin()
        return returncode
