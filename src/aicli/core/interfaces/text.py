from __future__ import annotations
"""Sanitizer protocol definitions."""

from typing import Protocol, runtime_checkable

from aicli.core.models import Location, SanitizedText


@runtime_checkable
class SanitizerProtocol(Protocol):
    """Protocol for the two-way content sanitizer.

    Implementations are expected to be total (never raise) and idempotent:
    feeding the returned text back in yields the same text.
    """

    def sanitize(self, data: bytes | str, location: Location) -> SanitizedText:
        ...
