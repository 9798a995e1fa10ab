"""
This module contains the default configuration settings for mcwrap.

Every uppercase name defined here is a setting. Each one can be overridden at
runtime through an environment variable named ``MCWRAP_<NAME>`` (see
`mcwrap.config`), and a `.env` file in the working directory is loaded into
the environment first.
"""

from dotenv import find_dotenv, load_dotenv

# Real environment variables take precedence over the .env file.
load_dotenv(find_dotenv(usecwd=True), override=False)

ENV_PREFIX = "MCWRAP_"

#* --- Shutdown Escalation ---
SHUTDOWN_CMD = "stop"          # Console command sent on the first stage
SHUTDOWN_WAIT = 30             # seconds before escalating to SIGTERM
TERM_WAIT = None               # seconds before escalating to SIGKILL; None follows SHUTDOWN_WAIT

#* --- Shutdown Notification (SIGUSR1) ---
NOTIFY_CMD = "notify_shutdown %d"
NOTIFY_WAIT = 30               # countdown seconds, also substituted into NOTIFY_CMD

#* --- Supervisor Process ---
PROCESS_TITLE = "mcwrap"

#* --- Logging ---
VERBOSE_LOGGING = False

# Grafana Loki (optional log shipping)
LOKI_ENABLED = False
LOKI_URL = "http://localhost:3100"
LOKI_ORG_ID = "fake"
LOG_BUFFER_FLUSH_INTERVAL = 10
