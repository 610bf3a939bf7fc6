# src/pmrc/logs.py

import logging
from collections.abc import Iterable
from typing import cast

from apathetic_logging import (
    Logger,
    registerDefaultLogLevel,
    registerLogger,
    registerLogLevelEnvVars,
)

from .constants import DEFAULT_ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL
from .meta import PROGRAM_ENV, PROGRAM_PACKAGE


class AppLogger(Logger):
    """Logger for pmrc; knows how to surface resolution warnings."""

    def reportWarnings(  # noqa: N802
        self, warnings: Iterable[str], *, source: str = "config"
    ) -> int:
        """Log each collected warning in order and return how many there were.

        Resolution never logs its own warnings; it hands them back so the
        caller decides where they go.
        """
        count = 0
        for message in warnings:
            self.warning(message)
            count += 1
        self.trace(f"[reportWarnings] {count} from {source}")
        return count


# --- Logger initialization ---------------------------------------------------

# Before any logger exists, so getLogger() hands out AppLogger instances.
logging.setLoggerClass(AppLogger)

# TRACE and SILENT levels
AppLogger.extendLoggingModule()

# PMRC_LOG_LEVEL first, then LOG_LEVEL
registerLogLevelEnvVars(
    [f"{PROGRAM_ENV}_{DEFAULT_ENV_LOG_LEVEL}", DEFAULT_ENV_LOG_LEVEL]
)
registerDefaultLogLevel(DEFAULT_LOG_LEVEL)
registerLogger(PROGRAM_PACKAGE)

_APP_LOGGER = cast("AppLogger", logging.getLogger(PROGRAM_PACKAGE))


# --- Convenience utils ---------------------------------------------------------


def getAppLogger() -> AppLogger:  # noqa: N802
    return _APP_LOGGER
