def test_can_import_all_protocols():
    # Import must succeed and expose the expected names
    import aicli.core.interfaces as I

    assert hasattr(I, "EmitterProtocol")
    assert hasattr(I, "OutputSinkProtocol")
    assert hasattr(I, "PathValidatorProtocol")
    assert hasattr(I, "LoggerFactoryProtocol")
    assert hasattr(I, "LoggerLikeProtocol")
    assert hasattr(I, "ReaderProtocol")
    assert hasattr(I, "ReaderRegistryProtocol")
    assert hasattr(I, "SanitizerProtocol")
    assert hasattr(I, "SecurityRecorderProtocol")


def test_concrete_classes_satisfy_protocols():
    import io

    from aicli.core.interfaces import (
        EmitterProtocol,
        LoggerFactoryProtocol,
        OutputSinkProtocol,
        PathValidatorProtocol,
        ReaderRegistryProtocol,
        SanitizerProtocol,
        SecurityRecorderProtocol,
    )
    from aicli.io.path_validator import PathValidator
    from aicli.io.readers import default_reader_registry
    from aicli.logging.factory import DefaultLoggerFactory
    from aicli.processing.sanitizer import Sanitizer
    from aicli.rendering.emitter import Emitter
    from aicli.security.events import NullSecurityRecorder, SecurityEventLog

    assert isinstance(PathValidator(), PathValidatorProtocol)
    assert isinstance(default_reader_registry(), ReaderRegistryProtocol)
    assert isinstance(Sanitizer(), SanitizerProtocol)
    assert isinstance(SecurityEventLog(), SecurityRecorderProtocol)
    assert isinstance(NullSecurityRecorder(), SecurityRecorderProtocol)
    assert isinstance(Emitter(io.StringIO()), EmitterProtocol)
    assert isinstance(io.StringIO(), OutputSinkProtocol)
    assert isinstance(DefaultLoggerFactory(), LoggerFactoryProtocol)
