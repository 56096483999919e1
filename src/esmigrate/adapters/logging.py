"""Logging setup for the command-line entry point."""

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def configure_logging(level: str | int = "INFO") -> logging.Handler:
    """Install a stderr handler on the ``esmigrate`` logger.

    Args:
        level: Level name or number for esmigrate's loggers.

    Returns:
        The installed handler. Calling again replaces it.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level {level!r}")
        level = resolved

    root = logging.getLogger("esmigrate")
    for handler in list(root.handlers):
        if getattr(handler, "_esmigrate", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT, _DATE_FORMAT))
    handler._esmigrate = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return handler
