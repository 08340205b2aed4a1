from __future__ import annotations

"""Security event collaborator.

`SecurityEventLog` is the object handed to the sanitizer as its side channel.
It forwards every event to the logger with structured context and keeps a
bounded in-memory list so tests (and the end-of-run summary) can inspect what
happened without parsing log output.
"""

import logging
from typing import List, Optional

from aicli.constants import EVENT_SAMPLE_CHARS, MAX_SECURITY_EVENTS
from aicli.core.interfaces.security import SecurityRecorderProtocol
from aicli.core.models import SecurityEvent
from aicli.logging.helpers import get_logger


def make_sample(text: str, start: int, end: int, *, limit: int = EVENT_SAMPLE_CHARS) -> str:
    """Return a printable, length-capped excerpt of ``text[start:end]``."""
    excerpt = text[start:min(end, start + limit)]
    shown = excerpt.encode('unicode_escape').decode('ascii')
    if end - start > limit:
        shown += '...'
    return shown


class SecurityEventLog(SecurityRecorderProtocol):
    """Bounded recorder that logs each event as it arrives."""

    def __init__(self, *, logger: Optional[logging.Logger] = None, max_events: int = MAX_SECURITY_EVENTS) -> None:
        self._log = logger or get_logger('security')
        self._max = max(0, int(max_events))
        self._events: List[SecurityEvent] = []
        self.dropped = 0

    def record(self, event: SecurityEvent) -> None:
        # Inbound content is user-controlled and gets the louder level.
        level = logging.WARNING if event.location == 'input' else logging.INFO
        self._log.log(
            level,
            'security: %s %s in %s at offset %d (%s)',
            event.rule,
            event.action,
            event.location,
            event.offset,
            event.sample,
            extra={'context': event.as_context()},
        )
        if len(self._events) < self._max:
            self._events.append(event)
        else:
            self.dropped += 1

    @property
    def events(self) -> tuple[SecurityEvent, ...]:
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events) + self.dropped

    def summary(self) -> None:
        """Log a one-line summary at the end of a run."""
        if not self._events:
            return
        self._log.info(
            'security: %d event(s) recorded, %d beyond the cap not retained',
            len(self._events) + self.dropped,
            self.dropped,
        )


class NullSecurityRecorder(SecurityRecorderProtocol):
    def record(self, event: SecurityEvent) -> None:
        return None
