"""
Diagnostic logging for the foxscrub CLI.

Notes
-----
The cleanup report is printed to stdout and is not logging output.
Diagnostics from `scrub_engine` and `foxscrub` loggers go to stderr and,
optionally, to a log file.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_ENGINE_LOGGERS = ("scrub_engine", "foxscrub")
_HANDLER_MARKER = "_foxscrub_handler"


def setup_logging(level_name: str = "WARNING", log_file: Path | None = None) -> int:
    """
    Configure diagnostic logging for a CLI run.

    Handlers installed by an earlier call are replaced. Handlers installed by
    anything else are left alone.

    Parameters
    ----------
    level_name:
        Standard logging level name, case-insensitive.
    log_file:
        Optional file that also receives diagnostics. Parent directories are
        created.

    Returns
    -------
    int
        Numeric level that was applied.

    Raises
    ------
    ValueError
        If `level_name` is not a logging level.
    OSError
        If the log file cannot be opened.
    """
    level = getattr(logging, level_name.upper().strip(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name!r}")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)

    for name in _ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(level)

    return level
