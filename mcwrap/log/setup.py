import sys
import logging
from typing import Optional

from mcwrap.config import WrapperSettings
from mcwrap.log.handler import LokiHandler

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


class MainFormatter(logging.Formatter):
    """
    Formatter for supervisor records. The supervisor shares the terminal with the
    child's own output, so every line is tagged with the wrapper's name.
    """

    def __init__(self, tag: str = "mcwrap") -> None:
        super().__init__(f"[{tag}] {LOG_FORMAT}")


def setup_logging(console_level: int = logging.INFO, settings: Optional[WrapperSettings] = None,
                  program: str = "unknown") -> None:
    """
    Configures the root logger for the supervisor.
    Clears any previously configured handlers, adds the console handler and,
    when enabled, the Grafana Loki handler.

    :param console_level: The logging level for console output.
    :param settings: Effective settings; Loki is only considered when given.
    :param program: Name of the supervised program, used to label shipped logs.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # stdout belongs to the supervised process.
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    if settings is not None and settings.LOKI_ENABLED:
        try:
            loki_handler = LokiHandler(
                url=settings.LOKI_URL,
                org_id=settings.LOKI_ORG_ID,
                program=program,
                flush_interval=settings.LOG_BUFFER_FLUSH_INTERVAL,
            )
            loki_handler.setLevel(logging.INFO)
            loki_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {settings.LOKI_URL}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")
