from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class PathValidatorProtocol(Protocol):
    def validate(self, candidate: str | Path) -> Path:
        ...

    @property
    def roots(self) -> Sequence[Path]:
        ...
