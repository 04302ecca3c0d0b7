"""This module sets up a centralized, context-aware logging system.

It provides a `LoggingProvider` singleton that configures and dispenses a
logger. The `ContextualFilter` uses thread-local storage to inject a
`correlation_id` into every log message, so that all the lines emitted while
validating one submission can be traced back to it.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Generator
from contextlib import contextmanager
from logging import INFO, Filter, Formatter, Logger, LogRecord, StreamHandler, getLevelNamesMapping, getLogger

from submission_validator.providers.config import ConfigProvider

LOGGER_NAME = "submission_validator"
LOG_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] [%(correlation_id)s] - %(message)s"

_log_context = threading.local()


def level_for(level_name: str) -> int:
    """Resolves a level name, in any case, to its numeric level.

    Args:
        level_name: The level name, e.g. "debug" or "WARNING".

    Returns:
        The numeric level, or INFO for unknown names.
    """
    return getLevelNamesMapping().get(level_name.upper(), INFO)


class ContextualFilter(Filter):
    """Stamps every record with the correlation ID of the submission being processed."""

    def filter(self, record: LogRecord) -> bool:
        """Copies the current thread's correlation ID onto the record.

        Args:
            record: The record about to be formatted.

        Returns:
            True, records are never dropped.
        """
        record.correlation_id = getattr(_log_context, "correlation_id", None) or "-"
        return True


class LoggingProvider:
    """Shares the `submission_validator` logger between services and the CLI."""

    _instance: LoggingProvider | None = None
    _logger: Logger | None = None

    def __new__(cls) -> LoggingProvider:
        """Returns the shared provider instance.

        Returns:
            The LoggingProvider shared by every service.
        """
        if not cls._instance:  # pragma: no cover
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_logger(self, level_override: str | None = None) -> Logger:
        """Returns the application logger, configuring it on first use.

        Args:
            level_override: A level name that replaces the configured
                LOG_LEVEL, typically passed by the CLI.

        Returns:
            The configured logger instance.
        """
        if self._logger is None:
            self._logger = getLogger(LOGGER_NAME)
            if not self._logger.handlers:
                handler = StreamHandler(sys.stderr)
                handler.setFormatter(Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
                handler.addFilter(ContextualFilter())
                self._logger.addHandler(handler)
            self._logger.setLevel(level_for(ConfigProvider.get_config().LOG_LEVEL))
        if level_override:
            self._logger.setLevel(level_for(level_override))
        return self._logger

    @contextmanager
    def set_correlation_id(self, correlation_id: str) -> Generator[None, None, None]:
        """Tags the log lines emitted inside the block with a correlation ID.

        Args:
            correlation_id: An upload id or object key identifying the submission.

        Yields:
            None.
        """
        try:
            _log_context.correlation_id = correlation_id
            yield
        finally:
            _log_context.correlation_id = None
