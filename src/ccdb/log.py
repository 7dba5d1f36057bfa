from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "ccdb"

_QUIET_FORMAT = "ccdb: %(message)s"
_VERBOSE_FORMAT = "[%(asctime)s, %(name)s, pid:%(process)d] %(message)s"
_HANDLER_MARKER = "_ccdb_handler"


def level_for_verbosity(verbosity: int) -> int:
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int = 0, *, stream: TextIO | None = None) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    Calling this again replaces the previous handler, so repeated CLI
    invocations in one process (tests) do not duplicate output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    setattr(handler, _HANDLER_MARKER, True)
    fmt = _VERBOSE_FORMAT if verbosity > 1 else _QUIET_FORMAT
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(level_for_verbosity(verbosity))
    logger.propagate = False
    return logger
