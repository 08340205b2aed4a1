from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from aicli.constants import FILE_DELIM_FMT, SEGMENT_SEPARATOR, STDIN_DELIM

# Single source of truth for the records exchanged by the pipeline.
Location = Literal['input', 'output']
Action = Literal['truncated', 'neutralized', 'escaped', 'flagged']


class Provenance(str, Enum):
    PROMPT = 'prompt'
    FILE = 'file'
    STDIN = 'stdin'


class ClientState(str, Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    STREAMING = 'streaming'
    COMPLETE = 'complete'
    FAILED = 'failed'


@dataclass(frozen=True)
class InputSegment:
    provenance: Provenance
    data: bytes
    label: str | None = None
    path: Path | None = None

    def render(self) -> bytes:
        """Segment bytes preceded by its provenance delimiter line."""
        if self.provenance is Provenance.PROMPT:
            return self.data
        if self.provenance is Provenance.FILE:
            header = FILE_DELIM_FMT.format(label=(self.label or '').replace('\n', ' '))
        else:
            header = STDIN_DELIM
        return header.encode('utf-8') + b'\n' + self.data


@dataclass(frozen=True)
class RawInput:
    """Ordered, immutable segments of one invocation's input."""
    segments: tuple[InputSegment, ...]

    def render(self) -> bytes:
        return SEGMENT_SEPARATOR.join(seg.render() for seg in self.segments)

    def __len__(self) -> int:
        return len(self.render())


@dataclass(frozen=True)
class SecurityEvent:
    rule: str
    action: Action
    location: Location
    offset: int
    sample: str

    def as_context(self) -> dict:
        return {
            'rule': self.rule,
            'action': self.action,
            'location': self.location,
            'offset': self.offset,
            'sample': self.sample,
        }


@dataclass(frozen=True)
class SanitizedText:
    text: str
    events: tuple[SecurityEvent, ...] = ()

    @property
    def size(self) -> int:
        return len(self.text.encode('utf-8'))

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class RequestParameters:
    model: str
    base_url: str
    api_key: Optional[str] = field(default=None, repr=False)
    temperature: Optional[float] = None
    timeout: float = 300.0
    stall_timeout: Optional[float] = None
    system_prompt: Optional[str] = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


@dataclass(frozen=True)
class StreamFragment:
    text: str
    terminal: bool = False
    index: int = 0
