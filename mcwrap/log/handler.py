import sys
import socket
import logging
import requests
import threading
from collections import deque
from typing import Any, Deque, Dict, Optional


class LokiHandler(logging.Handler):
    """
    A logging handler that ships supervisor logs to a Grafana Loki instance
    in batches using a background thread.
    """
    def __init__(self, url: str, org_id: Optional[str] = None, program: str = "unknown",
                 flush_interval: float = 10, batch_size: int = 200):
        """
        Initializes the Loki handler and starts its flush thread.

        :param url: The base URL of the Loki instance.
        :param org_id: The tenant ID for Loki (sent as 'X-Scope-OrgID').
        :param program: Name of the supervised program, used as a stream label.
        :param flush_interval: Seconds between periodic flushes.
        :param batch_size: Flush immediately once this many entries are buffered.
        """
        super().__init__()
        self.url = f"{url.rstrip('/')}/loki/api/v1/push"
        self.org_id = org_id
        self.program = program
        self.flush_interval = flush_interval
        self.batch_size = batch_size
        self.hostname = socket.gethostname()
        self.log_buffer: Deque[Dict[str, Any]] = deque()
        self.buffer_lock = threading.Lock()

        self.stop_event = threading.Event()
        self.flush_thread = threading.Thread(target=self._periodic_flush, daemon=True, name="LokiFlushThread")
        self.flush_thread.start()

    def _periodic_flush(self) -> None:
        while not self.stop_event.wait(self.flush_interval):
            self.flush()
        # Final flush on stop
        self.flush()

    def build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        """
        Builds a Loki stream entry for a single record.

        :param record: The log record to convert.
        :return: A dict in Loki's push API stream format.
        """
        return {
            "stream": {
                "job": "mcwrap",
                "program": self.program,
                "level": record.levelname.lower(),
                "hostname": self.hostname,
                "logger": record.name,
            },
            "values": [
                [str(int(record.created * 1e9)), self.format(record)]
            ]
        }

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = self.build_entry(record)
            with self.buffer_lock:
                self.log_buffer.append(entry)
                full = len(self.log_buffer) >= self.batch_size
            if full:
                self.flush()
        except Exception:
            self.handleError(record)

    def _take_batch(self) -> list:
        with self.buffer_lock:
            batch = list(self.log_buffer)
            self.log_buffer.clear()
        return batch

    def flush(self) -> None:
        """Sends all buffered entries to Loki. The network call happens outside the buffer lock."""
        batch = self._take_batch()
        if not batch:
            return

        headers = {'Content-Type': 'application/json'}
        if self.org_id:
            headers['X-Scope-OrgID'] = self.org_id
        try:
            response = requests.post(self.url, json={"streams": batch}, headers=headers, timeout=5)
            # 204 No Content is the success status for Loki push
            if response.status_code != 204:
                print(f"ERROR: Loki returned non-204 status: {response.status_code} - {response.text}", file=sys.stderr)
        except requests.RequestException as e:
            print(f"CRITICAL: Failed to send {len(batch)} logs to Loki: {e}", file=sys.stderr)

    def close(self) -> None:
        """Stops the flush thread after a final flush."""
        self.stop_event.set()
        if self.flush_thread.is_alive():
            self.flush_thread.join(timeout=self.flush_interval + 2)
        super().close()
