class MCWrapError(Exception):
    """Base class for all errors raised by mcwrap."""


class ConfigError(MCWrapError, ValueError):
    """Raised when an environment override cannot be applied to a setting."""


class LaunchError(MCWrapError):
    """Raised when the supervised process cannot be started."""


class AbnormalExitError(MCWrapError):
    """
    Raised when the supervised process exits with a non-zero status or is
    killed by a signal.
    """

    def __init__(self, returncode: int, message: str = "") -> None:
        self.returncode = returncode
        super().__init__(message or f"Supervised process exited abnormally (code {returncode}).")

    @property
    def exit_status(self) -> int:
        """The status the supervisor should exit with: the child's code, or 128+N for signal N."""
        if self.returncode < 0:
            return 128 - self.returncode
        return self.returncode
