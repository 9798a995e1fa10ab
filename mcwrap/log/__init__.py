"""
Logging module for mcwrap.
This module provides the root logger setup and the optional Grafana Loki handler.
"""

from .setup import setup_logging
from .handler import LokiHandler

__all__ = ["setup_logging", "LokiHandler"]
