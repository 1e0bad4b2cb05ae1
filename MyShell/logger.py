"""
Logging setup for myshell.

All loggers live under the "myshell" namespace. Nothing is emitted until
setup_logging() attaches a handler, so importing the package as a library
stays quiet.
"""

import logging
import sys
from datetime import datetime

from MyShell.config import LOG_FILE, LOG_LEVEL, SHELL_NAME


class LogFormatter(logging.Formatter):
    """[timestamp] LEVEL [subsystem] message"""

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime(
            "%Y-%m-%d %H:%M:%S.%f"
        )[:-3]
        subsystem = record.name.split(".", 1)[-1]
        message = f"[{timestamp}] {record.levelname:8s} [{subsystem}] {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def get_logger(name):
    """Return a logger inside the shell's namespace."""
    if name.startswith(SHELL_NAME + ".") or name == SHELL_NAME:
        return logging.getLogger(name)
    return logging.getLogger(f"{SHELL_NAME}.{name.rsplit('.', 1)[-1]}")


def setup_logging(level=None, log_file=None):
    """
    Attach a single handler to the root shell logger.
    Calling it again replaces the previous handler.
    """
    root = logging.getLogger(SHELL_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    log_file = log_file or LOG_FILE
    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(LogFormatter())

    root.addHandler(handler)
    root.setLevel(level or LOG_LEVEL)
    root.propagate = False
    return root


logging.getLogger(SHELL_NAME).addHandler(logging.NullHandler())
