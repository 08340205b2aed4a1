from __future__ import annotations

"""Public surface for aicli.core.

Data records and protocol types, re-exported from one stable location:

    from aicli.core import RawInput, SanitizedText, SecurityRecorderProtocol
"""

from aicli.core.interfaces import (
    EmitterProtocol,
    LoggerFactoryProtocol,
    LoggerLikeProtocol,
    OutputSinkProtocol,
    PathValidatorProtocol,
    ReaderProtocol,
    ReaderRegistryProtocol,
    SanitizerProtocol,
    SecurityRecorderProtocol,
)
from aicli.core.models import (
    ClientState,
    InputSegment,
    Provenance,
    RawInput,
    RequestParameters,
    SanitizedText,
    SecurityEvent,
    StreamFragment,
)

__all__ = [
    'ClientState',
    'EmitterProtocol',
    'InputSegment',
    'LoggerFactoryProtocol',
    'LoggerLikeProtocol',
    'OutputSinkProtocol',
    'PathValidatorProtocol',
    'Provenance',
    'RawInput',
    'ReaderProtocol',
    'ReaderRegistryProtocol',
    'RequestParameters',
    'SanitizedText',
    'SanitizerProtocol',
    'SecurityEvent',
    'SecurityRecorderProtocol',
    'StreamFragment',
]
