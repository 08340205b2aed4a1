from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class OutputSinkProtocol(Protocol):
    """Text sink the emitter writes to (stdout in production)."""

    def write(self, text: str) -> int:
        ...

    def flush(self) -> None:
        ...


@runtime_checkable
class EmitterProtocol(Protocol):
    def emit(self, text: str) -> None:
        ...

    def finish(self) -> None:
        ...
