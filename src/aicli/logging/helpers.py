from __future__ import annotations

"""Logger naming, one-time configuration and wire tracing for aicli.

Every logger lives under the ``aicli`` namespace and writes to stderr, so
log lines never interleave with the answer streamed on stdout. With
``--json-logs`` each record becomes one JSON object per line; security
events attach their details as ``extra={'context': {...}}``, which ends up
in the ``ctx`` field.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone


class JsonLogFormatter(logging.Formatter):
    """One compact JSON object per record.

    Fields: ``ts`` (UTC, milliseconds), ``level``, ``module`` (logger name),
    ``msg``, ``version`` and, when the record carries one, ``ctx``.
    """

    def __init__(self) -> None:
        super().__init__()
        from aicli import __version__
        self._version = __version__

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            'ts': ts.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'level': record.levelname,
            'module': record.name,
            'msg': record.getMessage(),
            'version': self._version,
        }
        ctx = getattr(record, 'context', None)
        if isinstance(ctx, dict) and ctx:
            payload['ctx'] = ctx
        return json.dumps(payload, ensure_ascii=False, default=str)


def verbosity_to_level(verbose: int) -> int:
    """Map the number of -v flags to a logging level (warnings by default)."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_base_logger(*, json_logs: bool = False, level: int = logging.WARNING) -> logging.Logger:
    """Attach the stderr handler to the ``aicli`` logger on first call.

    Later calls only adjust the level; the handler and its format stay.
    """
    base = logging.getLogger('aicli')
    base.setLevel(level)
    if base.handlers:
        return base

    base.propagate = False
    handler = logging.StreamHandler(sys.stderr)
    if json_logs:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    base.addHandler(handler)
    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``aicli.<name>`` (or the ``aicli`` logger itself)."""
    if not name or name == 'aicli':
        return logging.getLogger('aicli')
    if name.startswith('aicli.'):
        return logging.getLogger(name)
    return logging.getLogger(f'aicli.{name}')


def trace_wire(logger: logging.Logger, message: str, **ctx) -> None:
    """Debug-log raw stream traffic, only when ``AI_CLI_TRACE_WIRE=1``."""
    if os.getenv('AI_CLI_TRACE_WIRE') != '1':
        return
    logger.debug('%s | ctx=%r', message, ctx, extra={'context': ctx})
