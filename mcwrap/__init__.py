"""
mcwrap: supervises a console server process and shuts it down in escalating
stages (console stop command, SIGTERM, SIGKILL) on request.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
