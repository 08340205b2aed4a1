from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class LoggerLikeProtocol(Protocol):
    """Logging surface the pipeline components rely on.

    ``isEnabledFor`` gates work that only feeds diagnostics, such as the
    token estimate and wire tracing.
    """

    def debug(self, msg: str, *args, **kwargs) -> None: ...

    def info(self, msg: str, *args, **kwargs) -> None: ...

    def warning(self, msg: str, *args, **kwargs) -> None: ...

    def error(self, msg: str, *args, **kwargs) -> None: ...

    def isEnabledFor(self, level: int) -> bool: ...


@runtime_checkable
class LoggerFactoryProtocol(Protocol):
    """Configures the ``aicli`` logger tree once and hands out child loggers."""

    def get_logger(self, name: str) -> LoggerLikeProtocol:
        """Return the ``aicli.<name>`` logger, configuring handlers on first use."""
        ...
