"""
Logging setup for command-line runs of acqmerge.

The library modules only create loggers with `getLogger(__name__)`; handlers
and levels are configured here, and only when acqmerge runs as a script.
"""

from logging import (
    CRITICAL,
    DEBUG,
    INFO,
    WARNING,
    FileHandler,
    Formatter,
    Handler,
    StreamHandler,
    getLogger,
)
from pathlib import Path

LOGFILE_NAME = "acqmerge.log"

# -v count -> log level; 0 disables logging altogether
VERBOSITY_LEVELS = {0: CRITICAL + 1, 1: WARNING, 2: INFO, 3: DEBUG}

FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s %(threadName)s %(funcName)s:%(lineno)d] %(message)s"
CONSOLE_FORMAT = "%(levelname)-8s [%(name)s] %(message)s"


def config_logger(
    file_logging: bool = False,
    verbosity_level: int = 0,
    logfile: Path | None = None,
) -> Handler:
    """
    Attach a handler to the root logger and set its level.

    Parameters
    ----------
    file_logging : bool, default = False
        Append messages to a log file instead of printing them to stderr.
    verbosity_level : int, default = 0
        0 disables logging, 1 shows warnings, 2 informational messages,
        3 debugging messages.
    logfile : Path or None, default = None
        Log file used with ``file_logging``; `LOGFILE_NAME` in the current
        directory if None.

    Returns
    -------
    logging.Handler
        The handler that was attached, so callers can remove it again.

    Raises
    ------
    ValueError
        If verbosity_level is not between 0 and 3.
    """
    if verbosity_level not in VERBOSITY_LEVELS:
        raise ValueError("verbosity_level must be between 0 and 3")

    handler: Handler
    if file_logging:
        # loads run in worker threads, so file logs name the thread
        handler = FileHandler(logfile or LOGFILE_NAME, mode="a")
        handler.setFormatter(Formatter(fmt=FILE_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler = StreamHandler()
        handler.setFormatter(Formatter(fmt=CONSOLE_FORMAT))

    # Level is set on the root logger only; a handler level would hide records from pytest's caplog.
    root = getLogger()
    root.setLevel(VERBOSITY_LEVELS[verbosity_level])
    root.addHandler(handler)
    return handler
