from __future__ import annotations

"""
Reader registry and built-in file readers.

This module exposes:
  * `ReaderRegistry`: maps file suffixes to readers, with a default reader.
  * `RawFileReader`, `PdfFileReader`, `HtmlFileReader`: built-in readers.
  * `default_reader_registry`: registry wired with the built-ins.

Readers return bytes: the assembler concatenates raw content and leaves
decoding to the sanitizer. Document formats are converted to UTF-8 text
first, since their raw bytes mean nothing to a language model.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Sequence

from lxml import etree
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from aicli.core.interfaces.readers import ReaderProtocol, ReaderRegistryProtocol
from aicli.errors import PathNotReadable
from aicli.logging.helpers import get_logger


class FileReader(ABC):
    @abstractmethod
    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        raise NotImplementedError


class RawFileReader(FileReader):
    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or get_logger('io.readers')

    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        try:
            with path.open('rb') as fh:
                data = fh.read() if limit is None else fh.read(max(limit, 0) + 1)
        except OSError as exc:
            raise PathNotReadable(path, exc.strerror or str(exc)) from exc
        self._log.debug('read %s → %d bytes', path, len(data))
        return data


class PdfFileReader(FileReader):
    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or get_logger('io.readers.pdf')

    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        try:
            reader = PdfReader(path)
            pages_text: list[str] = []
            size = 0
            for idx, page in enumerate(reader.pages, start=1):
                txt = (page.extract_text() or '').strip()
                pages_text.append(txt)
                self._log.debug('PDF %s  · page %d → %d chars', path.name, idx, len(txt))
                size += len(txt.encode('utf-8')) + 2
                if limit is not None and size > limit:
                    self._log.debug('PDF %s: stopped after page %d, over %d bytes', path.name, idx, limit)
                    break
        except (PdfReadError, OSError, ValueError) as exc:
            raise PathNotReadable(path, f'failed to read PDF: {exc}') from exc

        full = '\n\n'.join(pages_text).strip()
        if not full:
            self._log.warning('⚠ %s: no embedded text found.', path)
        return full.encode('utf-8')


class HtmlFileReader(FileReader):
    """Convert HTML markup to plain text, one text node per line."""

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or get_logger('io.readers.html')

    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        # The whole document is parsed; only the extracted text is bounded.
        raw = RawFileReader(logger=self._log).read_bytes(path)
        if not raw.strip():
            return b''
        parser = etree.HTMLParser(recover=True)
        root = etree.fromstring(raw, parser=parser)
        if root is None:
            self._log.warning('⚠ %s: no parsable HTML content.', path)
            return b''
        etree.strip_elements(root, 'script', 'style', with_tail=False)
        text = '\n'.join(t.strip() for t in root.itertext() if t.strip()).encode('utf-8')
        return text if limit is None else text[:max(limit, 0) + 1]


class ReaderRegistry(ReaderRegistryProtocol):
    def __init__(self, default_reader: Optional[FileReader] = None) -> None:
        self._map: Dict[str, ReaderProtocol] = {}
        self._default: ReaderProtocol = default_reader or RawFileReader()

    def register(self, suffixes: Sequence[str], reader: ReaderProtocol) -> None:
        """Register a reader for given suffixes (case-insensitive, dot optional)."""
        for suf in suffixes:
            key = suf.lower().strip()
            if not key:
                continue
            if not key.startswith('.'):
                key = '.' + key
            self._map[key] = reader

    def for_suffix(self, suffix: str) -> ReaderProtocol:
        return self._map.get(suffix.lower(), self._default)

    def read_bytes(self, path: Path, limit: Optional[int] = None) -> bytes:
        return self.for_suffix(path.suffix).read_bytes(path, limit)

    @property
    def default_reader(self) -> ReaderProtocol:
        return self._default


def default_reader_registry(logger: Optional[logging.Logger] = None) -> ReaderRegistry:
    log = logger or get_logger('io.readers')
    reg = ReaderRegistry(default_reader=RawFileReader(logger=log))
    reg.register(['.pdf'], PdfFileReader(logger=log))
    reg.register(['.html', '.htm', '.xhtml'], HtmlFileReader(logger=log))
    return reg
