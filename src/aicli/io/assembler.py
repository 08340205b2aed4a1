from __future__ import annotations
"""
Input assembly.

`InputAssembler` merges the prompt, the validated file arguments and piped
stdin into one `RawInput`, in that order. The size of the rendered payload
(delimiter lines included) is tracked while reading so that clearly
oversized input is rejected before anything reaches the sanitizer; files
and stdin are read with the remaining budget as a bound, so an oversized
source is never read in full.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from aicli.constants import RAW_INPUT_CEILING, SEGMENT_SEPARATOR
from aicli.core.interfaces.readers import ReaderRegistryProtocol
from aicli.core.models import InputSegment, Provenance, RawInput
from aicli.errors import EmptyPrompt, SizeExceeded
from aicli.io.readers import default_reader_registry
from aicli.io.stdin import StdinLike, read_stdin, stdin_available
from aicli.logging.helpers import get_logger
from aicli.utils.paths import display_label


class InputAssembler:
    def __init__(
        self,
        *,
        readers: Optional[ReaderRegistryProtocol] = None,
        roots: Sequence[Path] = (),
        ceiling: int = RAW_INPUT_CEILING,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._log = logger or get_logger('io.assembler')
        self._readers: ReaderRegistryProtocol = readers or default_reader_registry(self._log)
        self._roots = tuple(roots) or (Path.cwd(),)
        self._ceiling = int(ceiling)

    def assemble(
        self,
        prompt: Optional[str],
        files: Iterable[Path] = (),
        stdin: Optional[StdinLike] = None,
    ) -> RawInput:
        """Build the RawInput for one invocation.

        Args:
            prompt: Prompt text; must be non-empty after trimming.
            files: Already validated paths, in command-line order.
            stdin: Optional stdin stream; read only when input is available.

        Raises:
            EmptyPrompt: The prompt is missing or blank.
            SizeExceeded: The assembled payload exceeds the raw ceiling.
        """
        if prompt is None or not prompt.strip():
            raise EmptyPrompt()

        segments: List[InputSegment] = []
        total = 0

        def _add(segment: InputSegment) -> None:
            nonlocal total
            total += len(segment.render()) + (len(SEGMENT_SEPARATOR) if segments else 0)
            if total > self._ceiling:
                raise SizeExceeded(total, self._ceiling)
            segments.append(segment)

        _add(InputSegment(Provenance.PROMPT, prompt.strip().encode('utf-8')))

        for path in files:
            data = self._readers.read_bytes(path, self._ceiling - total)
            label = display_label(path, self._roots)
            _add(InputSegment(Provenance.FILE, data, label=label, path=path))
            self._log.info('added file %s (%d bytes)', label, len(data))

        if stdin_available(stdin):
            data = read_stdin(stdin, self._ceiling - total)  # type: ignore[arg-type]
            if data:
                _add(InputSegment(Provenance.STDIN, data, label='stdin'))
                self._log.info('added stdin (%d bytes)', len(data))
            else:
                self._log.debug('stdin is empty; skipped')
        else:
            self._log.debug('no piped stdin')

        raw = RawInput(segments=tuple(segments))
        self._log.info('assembled input: %d segment(s), %d bytes', len(segments), total)
        return raw
