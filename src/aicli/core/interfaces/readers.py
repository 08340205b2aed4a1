from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ReaderProtocol(Protocol):
    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        """Return the content of *path*.

        With *limit*, a reader may stop once it has more than *limit* bytes;
        callers treat a longer result as oversized.
        """
        ...


@runtime_checkable
class ReaderRegistryProtocol(Protocol):
    def register(self, suffixes: Sequence[str], reader: ReaderProtocol) -> None:
        ...

    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        ...
