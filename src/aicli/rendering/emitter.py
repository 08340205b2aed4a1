from __future__ import annotations

"""Incremental writer for sanitized fragments.

The emitter never holds the response: it writes each piece as soon as it
gets it and flushes, so partial output is visible before the stream ends.
"""

import logging
import sys
from typing import Optional

from aicli.core.interfaces.emit import EmitterProtocol, OutputSinkProtocol
from aicli.logging.helpers import get_logger


class Emitter(EmitterProtocol):
    def __init__(
        self,
        sink: Optional[OutputSinkProtocol] = None,
        *,
        final_newline: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Create an emitter over *sink* (stdout by default).

        Args:
            sink: Text stream to write to.
            final_newline: Write a closing newline on `finish` when the output
                did not end with one. Defaults to True only for terminals, so
                piped output is byte-exact.
            logger: Optional logger instance.
        """
        self._sink: OutputSinkProtocol = sink if sink is not None else sys.stdout
        if final_newline is None:
            isatty = getattr(self._sink, 'isatty', None)
            final_newline = bool(isatty()) if callable(isatty) else False
        self._final_newline = final_newline
        self._log = logger or get_logger('emitter')
        self._count = 0
        self._chars = 0
        self._ends_with_newline = True

    @property
    def fragments_written(self) -> int:
        return self._count

    @property
    def chars_written(self) -> int:
        return self._chars

    def emit(self, text: str) -> None:
        if not text:
            return
        self._sink.write(text)
        self._sink.flush()
        self._count += 1
        self._chars += len(text)
        self._ends_with_newline = text.endswith('\n')

    def finish(self) -> None:
        if self._final_newline and self._chars and not self._ends_with_newline:
            self._sink.write('\n')
            self._sink.flush()
        self._log.debug('emitted %d fragment(s), %d chars', self._count, self._chars)
