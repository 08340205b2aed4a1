from __future__ import annotations

import logging

from aicli.core.interfaces.logging import LoggerFactoryProtocol
from aicli.logging.helpers import get_logger, setup_base_logger


class DefaultLoggerFactory(LoggerFactoryProtocol):
    """Hands out ``aicli.*`` loggers; the stderr handler is set up lazily.

    The CLI builds one of these per run from ``--json-logs`` and the ``-v``
    count, so nothing is configured for code that only imports the package.
    """

    def __init__(self, *, json_logs: bool = False, level: int = logging.WARNING) -> None:
        self._json = bool(json_logs)
        self._level = int(level)
        self._configured = False

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            setup_base_logger(json_logs=self._json, level=self._level)
            self._configured = True
        return get_logger(name)
