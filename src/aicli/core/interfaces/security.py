from __future__ import annotations

from typing import Protocol, runtime_checkable

from aicli.core.models import SecurityEvent


@runtime_checkable
class SecurityRecorderProtocol(Protocol):
    """Collaborator that receives every event the sanitizer raises.

    Recording must never raise nor block the pipeline.
    """

    def record(self, event: SecurityEvent) -> None:
        ...
