from __future__ import annotations
"""Piped standard-input detection and bounded reads.

Presence is decided from what stdin *is*, never by blocking on it:

  * a terminal, a closed stream or a missing stream means no input;
  * a pipe or a redirected regular file means input (reading a pipe waits
    for the writer to finish, which is what ``producer | ai-cli`` expects);
  * anything else (sockets, character devices) counts only if ``select``
    reports it readable right away.

In-memory streams without a file descriptor are treated as present, so
callers and tests can hand in ``io.BytesIO`` directly.
"""

import os
import select
import stat
from typing import IO, Optional, Union

StdinLike = Union[IO[bytes], IO[str]]


def stdin_available(stream: Optional[StdinLike]) -> bool:
    if stream is None or getattr(stream, 'closed', False):
        return False
    isatty = getattr(stream, 'isatty', None)
    if callable(isatty) and isatty():
        return False
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return True
    try:
        mode = os.fstat(fd).st_mode
    except OSError:
        return False
    if stat.S_ISFIFO(mode) or stat.S_ISREG(mode):
        return True
    try:
        ready, _, _ = select.select([fd], [], [], 0)
    except (OSError, ValueError):
        return False
    return bool(ready)


def read_stdin(stream: StdinLike, limit: int) -> bytes:
    """Read at most ``limit + 1`` bytes so callers can detect overflow."""
    source = getattr(stream, 'buffer', stream)
    data = source.read(max(0, limit) + 1)
    if isinstance(data, str):
        data = data.encode('utf-8')
    return data or b''
