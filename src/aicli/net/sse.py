from __future__ import annotations
"""
Incremental server-sent-events decoder.

Text goes in as httpx decodes it off the socket (``Response.aiter_text``
keeps multi-byte characters split across chunks intact), complete events
come out. Chunk boundaries may fall anywhere, including between the CR and
LF of a line ending.

Framing follows the text/event-stream format: lines end in LF, CRLF or CR;
lines starting with ':' are comments; consecutive ``data:`` lines are joined
with LF; a blank line dispatches the event.

Memory is bounded: an unterminated line or the data of a single event may
not grow past ``max_event_chars``, otherwise `MalformedStream` is raised.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from aicli.constants import SANITIZE_CEILING
from aicli.errors import MalformedStream

_EOL = re.compile(r'\r\n|\r|\n')


@dataclass(frozen=True)
class ServerEvent:
    data: str
    event: Optional[str] = None
    id: Optional[str] = None


class SSEDecoder:
    def __init__(self, *, max_event_chars: int = SANITIZE_CEILING) -> None:
        self._limit = int(max_event_chars)
        self._partial: List[str] = []
        self._partial_len = 0
        self._skip_lf = False
        self._data: List[str] = []
        self._data_len = 0
        self._event: Optional[str] = None
        self._id: Optional[str] = None

    def feed(self, text: str) -> List[ServerEvent]:
        """Decode *text*; only the new text is scanned for line endings."""
        if self._skip_lf and text:
            # The previous chunk ended in CR; this LF completes a CRLF.
            if text[0] == '\n':
                text = text[1:]
            self._skip_lf = False

        events: List[ServerEvent] = []
        pos = 0
        for m in _EOL.finditer(text):
            line = text[pos:m.start()]
            if self._partial:
                line = ''.join(self._partial) + line
                self._partial, self._partial_len = [], 0
            pos = m.end()
            ev = self._process_line(line)
            if ev is not None:
                events.append(ev)
        if text.endswith('\r'):
            self._skip_lf = True

        rest = text[pos:]
        if rest:
            self._partial_len += len(rest)
            if self._partial_len > self._limit:
                raise MalformedStream(f'stream line longer than {self._limit} characters')
            self._partial.append(rest)
        return events

    def close(self) -> List[ServerEvent]:
        """Flush what is left once the body has ended."""
        events: List[ServerEvent] = []
        if self._partial:
            line = ''.join(self._partial)
            self._partial, self._partial_len = [], 0
            ev = self._process_line(line)
            if ev is not None:
                events.append(ev)
        tail = self._dispatch()
        if tail is not None:
            events.append(tail)
        return events

    def _process_line(self, line: str) -> Optional[ServerEvent]:
        if not line:
            return self._dispatch()
        if line.startswith(':'):
            return None
        name, sep, value = line.partition(':')
        if sep and value.startswith(' '):
            value = value[1:]
        if name == 'data':
            self._data_len += len(value) + 1
            if self._data_len > self._limit:
                raise MalformedStream(f'stream event larger than {self._limit} characters')
            self._data.append(value)
        elif name == 'event':
            self._event = value
        elif name == 'id':
            self._id = value
        return None

    def _dispatch(self) -> Optional[ServerEvent]:
        if not self._data:
            self._event = None
            return None
        ev = ServerEvent(data='\n'.join(self._data), event=self._event, id=self._id)
        self._data = []
        self._data_len = 0
        self._event = None
        return ev
