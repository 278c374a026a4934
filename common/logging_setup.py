"""Logging setup for meshchat.

The terminal belongs to the UI while the client runs, so logs only ever go
to a file (or nowhere).
"""

import logging
import threading
from typing import Optional


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
) -> None:
    """
    Set up logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: File path to write logs to; logging is disabled when None
    """
    root = logging.getLogger()
    if not log_file:
        root.addHandler(logging.NullHandler())
        return

    log_format = "[%(asctime)s %(levelname)s %(name)s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        datefmt=date_format,
        handlers=[logging.FileHandler(log_file)],
    )
    threading.excepthook = _log_thread_exception


def _log_thread_exception(args: threading.ExceptHookArgs) -> None:
    """Route uncaught background thread errors into the log file."""
    thread_name = args.thread.name if args.thread else "<unknown>"
    logging.getLogger("meshchat.threads").error(
        f"Unhandled error in thread {thread_name}",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
