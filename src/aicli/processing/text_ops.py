from __future__ import annotations

from typing import Tuple


def truncate_utf8(text: str, limit: int) -> Tuple[str, bool]:
    """Cut *text* so that its UTF-8 encoding fits in *limit* bytes.

    The cut always lands on a character boundary. Returns the (possibly
    shortened) text and whether anything was removed.
    """
    # Fast path: 4 bytes per char is the UTF-8 worst case.
    if len(text) * 4 <= limit:
        return text, False
    raw = text.encode('utf-8')
    if len(raw) <= limit:
        return text, False
    return raw[:max(0, limit)].decode('utf-8', errors='ignore'), True


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    if '\r' not in text:
        return text
    return text.replace('\r\n', '\n').replace('\r', '\n')


def coerce_text(data: bytes | bytearray | str) -> str:
    """Return *data* as a str that is guaranteed to encode as UTF-8."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode('utf-8', errors='replace')
    try:
        data.encode('utf-8')
    except UnicodeEncodeError:
        # Lone surrogates cannot travel over the wire.
        return data.encode('utf-8', errors='replace').decode('utf-8')
    return data
