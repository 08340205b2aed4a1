from __future__ import annotations
"""
End-to-end wiring of one invocation.

    validate paths -> assemble -> sanitize (input) -> stream request
        -> handoff -> sanitize (output, per fragment) -> emit

Everything that can fail on the input side fails before the request is
built, so a rejected path or an empty prompt never reaches the network.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import httpx

from aicli.ai.message_utils import build_chat_messages
from aicli.ai.token_budget import TokenBudgetEstimator
from aicli.core.interfaces.emit import OutputSinkProtocol
from aicli.core.models import SanitizedText, StreamFragment
from aicli.errors import AiCliError
from aicli.io.assembler import InputAssembler
from aicli.io.path_validator import PathValidator
from aicli.io.readers import default_reader_registry
from aicli.io.stdin import StdinLike
from aicli.logging.helpers import get_logger
from aicli.net.completion_client import StreamingCompletionClient
from aicli.net.handoff import relay
from aicli.processing.sanitizer import OutputSanitizer, Sanitizer
from aicli.rendering.emitter import Emitter
from aicli.runtime.config import AppConfig
from aicli.security.events import SecurityEventLog


@dataclass(frozen=True)
class RunResult:
    fragments: int
    chars_written: int
    security_events: int
    malformed_events: int


class Pipeline:
    """Owns the collaborators for a single prompt → answer exchange."""

    def __init__(
        self,
        config: AppConfig,
        *,
        cwd: Optional[Path] = None,
        sink: Optional[OutputSinkProtocol] = None,
        final_newline: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        recorder: Optional[SecurityEventLog] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cfg = config
        self._log = logger or get_logger('pipeline')
        self._transport = transport
        self.recorder = recorder or SecurityEventLog()
        self.validator = PathValidator(cwd=cwd, allowed_dirs=config.allowed_dirs, logger=get_logger('io.paths'))
        self.assembler = InputAssembler(
            readers=default_reader_registry(get_logger('io.readers')),
            roots=self.validator.roots,
        )
        self.sanitizer = Sanitizer(recorder=self.recorder, escape_output=config.escape_output)
        self.emitter = Emitter(sink, final_newline=final_newline)
        self.client: Optional[StreamingCompletionClient] = None

    def prepare(self, prompt: Optional[str], files: Iterable[str | Path] = (), stdin: Optional[StdinLike] = None) -> SanitizedText:
        """Validate, assemble and sanitize the input side."""
        paths = self.validator.validate_all(files)
        raw = self.assembler.assemble(prompt, paths, stdin)
        clean = self.sanitizer.sanitize(raw.render(), 'input')
        self._log.info('request payload: %d bytes after sanitization, %d event(s)', clean.size, len(clean.events))
        if self._log.isEnabledFor(logging.INFO):
            messages = build_chat_messages(system_prompt=self._cfg.system_prompt or '', user_prompt=clean.text)
            est = TokenBudgetEstimator().estimate_messages_tokens(messages, model=self._cfg.model)
            self._log.info('estimated prompt size: ~%d tokens (%d chars)', est.tokens_in, est.chars_in)
        return clean

    async def stream(self, content: SanitizedText) -> int:
        """Stream the completion for *content* to the emitter; return fragment count."""
        self.client = StreamingCompletionClient(
            self._cfg.to_request_parameters(),
            transport=self._transport,
            logger=get_logger('net.client'),
        )
        outbound = OutputSanitizer(self.sanitizer)

        def _consume(fragment: StreamFragment) -> None:
            self.emitter.emit(outbound.feed(fragment.text))

        try:
            count = await relay(self.client.stream(content), _consume)
        except AiCliError:
            # Output already streamed stays; only the held-back tail is added.
            self.emitter.emit(outbound.flush())
            self.emitter.finish()
            raise
        self.emitter.emit(outbound.flush())
        self.emitter.finish()
        return count

    def run(self, prompt: Optional[str], files: Iterable[str | Path] = (), stdin: Optional[StdinLike] = None) -> RunResult:
        content = self.prepare(prompt, files, stdin)
        try:
            count = asyncio.run(self.stream(content))
        finally:
            self.recorder.summary()
        return RunResult(
            fragments=count,
            chars_written=self.emitter.chars_written,
            security_events=len(self.recorder),
            malformed_events=self.client.malformed_events if self.client else 0,
        )
