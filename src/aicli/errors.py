from __future__ import annotations

"""Error taxonomy for ai-cli.

Every fatal error derives from `AiCliError` and carries the process exit code
the CLI should use for it. `MalformedEvent` is the only recoverable error: the
streaming client catches it, logs it and keeps reading.
"""

from pathlib import Path
from typing import Optional

from aicli.constants import (
    EXIT_AUTH,
    EXIT_FAILURE,
    EXIT_HTTP,
    EXIT_INPUT,
    EXIT_MALFORMED_STREAM,
    EXIT_NETWORK,
    EXIT_RATE_LIMIT,
    EXIT_SERVER,
    EXIT_USAGE,
)


class AiCliError(Exception):
    """Base class for every error that aborts a run."""

    exit_code: int = EXIT_FAILURE


class ConfigError(AiCliError, ValueError):
    exit_code = EXIT_USAGE


# --------------------------------------------------------------------------- #
#  Input validation                                                            #
# --------------------------------------------------------------------------- #
class InputError(AiCliError):
    exit_code = EXIT_INPUT


class PathTraversal(InputError):
    def __init__(self, candidate: str, resolved: Path) -> None:
        super().__init__(f'{candidate}: resolves to {resolved}, outside the allowed directories')
        self.candidate = candidate
        self.resolved = resolved


class PathNotFound(InputError):
    def __init__(self, path: Path) -> None:
        super().__init__(f'{path}: no such file')
        self.path = path


class PathNotReadable(InputError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f'{path}: not readable ({reason})')
        self.path = path


class EmptyPrompt(InputError):
    def __init__(self) -> None:
        super().__init__('a non-empty prompt is required (use -p/--prompt or default_prompt in the config)')


class SizeExceeded(InputError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f'assembled input is larger than {limit} bytes (got at least {size})')
        self.size = size
        self.limit = limit


# --------------------------------------------------------------------------- #
#  Completion request / stream                                                 #
# --------------------------------------------------------------------------- #
class CompletionError(AiCliError):
    pass


class NetworkError(CompletionError):
    exit_code = EXIT_NETWORK


class ConnectTimeout(NetworkError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f'no response within {timeout:g}s')
        self.timeout = timeout


class ConnectionFailed(NetworkError):
    pass


class StreamStalled(NetworkError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f'stream stalled: no data for {timeout:g}s')
        self.timeout = timeout


class StreamInterrupted(NetworkError):
    pass


class AuthError(CompletionError):
    exit_code = EXIT_AUTH


class RateLimited(CompletionError):
    exit_code = EXIT_RATE_LIMIT

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class HttpError(CompletionError):
    exit_code = EXIT_HTTP

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f'HTTP {code}: {message}' if message else f'HTTP {code}')
        self.code = code


class ServerError(HttpError):
    exit_code = EXIT_SERVER


class MalformedStream(CompletionError):
    exit_code = EXIT_MALFORMED_STREAM


class MalformedEvent(AiCliError):
    """A single stream event could not be decoded; never fatal."""
