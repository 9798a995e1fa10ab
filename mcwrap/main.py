"""
Command-line entry point for mcwrap.

Usage:
    mcwrap <executable> [args...]

Example:
    MCWRAP_SHUTDOWN_WAIT=60 mcwrap java -Xmx4G -jar server.jar nogui
"""
import os
import sys
import logging
import setproctitle
from typing import List, Optional

from mcwrap.log import setup_logging
from mcwrap.config import WrapperSettings
from mcwrap.supervisor import Supervisor
from mcwrap.exceptions import AbnormalExitError, ConfigError, LaunchError


USAGE = "Usage: mcwrap <executable> [args...]"
EXIT_USAGE = 2


def parse_arguments(args: List[str]) -> List[str]:
    """
    Extracts the command to supervise from the supervisor's own arguments.
    A leading '--' is dropped so commands starting with a dash can be wrapped.

    :param args: The supervisor's arguments, without the program name.
    :return: The executable followed by its arguments.
    :raises SystemExit: If no command is given, or on -h/--help.
    """
    if args and args[0] in ("-h", "--help"):
        print(__doc__.strip())
        raise SystemExit(0)
    if args and args[0] == "--":
        args = args[1:]
    if not args:
        print("ERROR: No command to supervise provided", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        raise SystemExit(EXIT_USAGE)
    return list(args)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Runs the supervisor until the wrapped process exits.

    :param argv: Arguments without the program name. Defaults to `sys.argv[1:]`.
    :return int: The supervisor's exit status.
    """
    command = parse_arguments(sys.argv[1:] if argv is None else argv)

    try:
        settings = WrapperSettings()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    program = os.path.basename(command[0])
    setup_logging(logging.DEBUG if settings.VERBOSE_LOGGING else logging.INFO, settings, program)
    setproctitle.setproctitle(f"{settings.PROCESS_TITLE} - {program}")

    supervisor = Supervisor(command, settings)
    try:
        return supervisor.run()
    except LaunchError:
        return EXIT_USAGE
    except AbnormalExitError as e:
        return e.exit_status


if __name__ == "__main__":
    sys.exit(main())
