from .emit import EmitterProtocol, OutputSinkProtocol
from .fs import PathValidatorProtocol
from .logging import LoggerFactoryProtocol, LoggerLikeProtocol
from .readers import ReaderProtocol, ReaderRegistryProtocol
from .security import SecurityRecorderProtocol
from .text import SanitizerProtocol

__all__ = [
    'EmitterProtocol',
    'OutputSinkProtocol',
    'PathValidatorProtocol',
    'LoggerFactoryProtocol',
    'LoggerLikeProtocol',
    'ReaderProtocol',
    'ReaderRegistryProtocol',
    'SecurityRecorderProtocol',
    'SanitizerProtocol',
]
