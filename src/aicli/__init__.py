from __future__ import annotations

__version__ = '0.3.0'

from aicli.cli import AiCli, main
from aicli.core.models import RequestParameters, SanitizedText, SecurityEvent, StreamFragment
from aicli.errors import AiCliError
from aicli.io.assembler import InputAssembler
from aicli.io.path_validator import PathValidator
from aicli.net.completion_client import StreamingCompletionClient
from aicli.processing.sanitizer import OutputSanitizer, Sanitizer
from aicli.rendering.emitter import Emitter
from aicli.runtime.config import AppConfig, resolve_config
from aicli.runtime.pipeline import Pipeline
from aicli.security.events import SecurityEventLog

__all__ = [
    'AiCli',
    'AiCliError',
    'AppConfig',
    'Emitter',
    'InputAssembler',
    'OutputSanitizer',
    'PathValidator',
    'Pipeline',
    'RequestParameters',
    'SanitizedText',
    'Sanitizer',
    'SecurityEvent',
    'SecurityEventLog',
    'StreamFragment',
    'StreamingCompletionClient',
    '__version__',
    'main',
]
