from __future__ import annotations
"""Streaming chat-completion client.

`StreamingCompletionClient.stream` posts one OpenAI-compatible
``/chat/completions`` request with ``stream: true`` and yields
`StreamFragment` objects as the server-sent events arrive.

Lifecycle (each transition is logged at INFO):

    IDLE -> CONNECTING -> STREAMING -> COMPLETE
                    \\            \\-> FAILED
                     \\-> FAILED

Failure mapping:

* no status line plus first body chunk within ``timeout``: `ConnectTimeout`;
* DNS, refused connection or TLS handshake failure: `ConnectionFailed`;
* 401: `AuthError`; 429: `RateLimited`; 5xx: `ServerError`; other
  non-2xx: `HttpError`. The error body is read up to a small bound;
* no chunk for ``stall_timeout`` seconds once streaming: `StreamStalled`;
* socket closed before a terminal marker: `StreamInterrupted`;
* a body in which not a single event could be decoded: `MalformedStream`.

Events that cannot be decoded are logged and skipped; they never end the
stream. The API key is sent as a bearer token and never logged.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Dict, Iterator, List, Optional, TypeVar

import httpx

from aicli.ai.message_utils import build_chat_messages
from aicli.constants import ERROR_BODY_LIMIT
from aicli.core.models import ClientState, RequestParameters, SanitizedText, StreamFragment
from aicli.errors import (
    AuthError,
    CompletionError,
    ConnectionFailed,
    ConnectTimeout,
    HttpError,
    MalformedEvent,
    MalformedStream,
    RateLimited,
    ServerError,
    StreamInterrupted,
    StreamStalled,
)
from aicli.logging.helpers import get_logger, trace_wire
from aicli.net.sse import ServerEvent, SSEDecoder

T = TypeVar('T')

DONE_SENTINEL = '[DONE]'


@dataclass(frozen=True)
class _Delta:
    text: str = ''
    finished: bool = False
    done: bool = False


@dataclass
class _Progress:
    index: int = 0
    events: int = 0
    decoded: int = 0
    terminal: bool = False
    done: bool = False


def _user_agent() -> str:
    from aicli import __version__
    return f'ai-cli/{__version__}'


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        secs = float(value.strip())
    except ValueError:
        return None
    return secs if secs >= 0 else None


def error_message_from_body(body: bytes) -> str:
    """Best-effort human message from an error response body."""
    text = body.decode('utf-8', errors='replace').strip()
    try:
        data = json.loads(text)
    except ValueError:
        return text[:200]
    if isinstance(data, dict):
        err = data.get('error')
        if isinstance(err, dict) and isinstance(err.get('message'), str):
            return err['message']
        if isinstance(err, str):
            return err
        if isinstance(data.get('message'), str):
            return data['message']
    return text[:200]


def decode_event(event: ServerEvent) -> _Delta:
    """Turn one server event into a content delta.

    Raises:
        MalformedEvent: The payload is not JSON or does not have the
            chat-completion chunk shape.
        ServerError: The server reported an error inside the stream.
    """
    data = event.data.strip()
    if data == DONE_SENTINEL:
        return _Delta(done=True)
    try:
        payload = json.loads(data)
    except ValueError as exc:
        raise MalformedEvent(f'invalid JSON in event: {exc}') from exc
    if not isinstance(payload, dict):
        raise MalformedEvent(f'expected an object, got {type(payload).__name__}')

    err = payload.get('error')
    if err:
        message = err.get('message') if isinstance(err, dict) else str(err)
        code = err.get('code') if isinstance(err, dict) else None
        raise ServerError(code if isinstance(code, int) else 500, f'error in stream: {message}')

    choices = payload.get('choices')
    if not isinstance(choices, list):
        raise MalformedEvent("event has no 'choices' list")

    parts: List[str] = []
    finished = False
    for choice in choices:
        if not isinstance(choice, dict):
            raise MalformedEvent('choice is not an object')
        delta = choice.get('delta') or {}
        if not isinstance(delta, dict):
            raise MalformedEvent("'delta' is not an object")
        content = delta.get('content')
        if content is not None and not isinstance(content, str):
            raise MalformedEvent("'delta.content' is not a string")
        if content:
            parts.append(content)
        if choice.get('finish_reason'):
            finished = True
    return _Delta(text=''.join(parts), finished=finished)


class StreamingCompletionClient:
    """One streaming request per `stream` call."""

    def __init__(
        self,
        params: RequestParameters,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the client.

        Args:
            params: Model, endpoint, credentials and timeouts.
            transport: Optional httpx transport (tests use ``MockTransport``).
            logger: Optional logger instance.
        """
        self._params = params
        self._transport = transport
        self._log = logger or get_logger('net.client')
        self._state = ClientState.IDLE
        self.malformed_events = 0

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def params(self) -> RequestParameters:
        return self._params

    # ------------------------------------------------------------------ #
    #  Request                                                             #
    # ------------------------------------------------------------------ #
    def build_payload(self, content: SanitizedText | str) -> Dict[str, Any]:
        messages = build_chat_messages(
            system_prompt=self._params.system_prompt or '',
            user_prompt=str(content),
        )
        payload: Dict[str, Any] = {
            'model': self._params.model,
            'messages': messages,
            'stream': True,
        }
        if self._params.temperature is not None:
            payload['temperature'] = self._params.temperature
        return payload

    def build_headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'text/event-stream',
            'Content-Type': 'application/json',
            'User-Agent': _user_agent(),
        }
        if self._params.api_key:
            headers['Authorization'] = f'Bearer {self._params.api_key}'
        return headers

    # ------------------------------------------------------------------ #
    #  Stream                                                              #
    # ------------------------------------------------------------------ #
    async def stream(self, content: SanitizedText | str) -> AsyncIterator[StreamFragment]:
        """Send *content* as the user message and yield response fragments.

        The last fragment yielded on success has ``terminal=True``.
        """
        if self._state is not ClientState.IDLE:
            raise RuntimeError('StreamingCompletionClient.stream() may only be called once')

        self._transition(ClientState.CONNECTING)
        payload = self.build_payload(content)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._params.timeout
        timeout = httpx.Timeout(None, connect=self._params.timeout)

        self._log.info(
            'POST %s (model=%s, %d message(s))',
            self._params.endpoint,
            self._params.model,
            len(payload['messages']),
        )
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
                request = client.build_request(
                    'POST', self._params.endpoint, json=payload, headers=self.build_headers()
                )
                response = await self._until(client.send(request, stream=True), deadline)
                try:
                    await self._check_status(response)
                    self._transition(ClientState.STREAMING)
                    async for fragment in self._read_fragments(response, deadline):
                        yield fragment
                finally:
                    await response.aclose()
        except CompletionError:
            self._transition(ClientState.FAILED)
            raise
        except httpx.TimeoutException as exc:
            self._transition(ClientState.FAILED)
            raise ConnectTimeout(self._params.timeout) from exc
        except httpx.ConnectError as exc:
            self._transition(ClientState.FAILED)
            raise ConnectionFailed(f'cannot reach {self._params.base_url}: {exc}') from exc
        except httpx.TransportError as exc:
            was_streaming = self._state is ClientState.STREAMING
            self._transition(ClientState.FAILED)
            if was_streaming:
                raise StreamInterrupted(f'connection lost mid-stream: {exc}') from exc
            raise ConnectionFailed(f'request to {self._params.base_url} failed: {exc}') from exc

    async def _until(self, aw: Awaitable[T], deadline: float) -> T:
        remaining = deadline - asyncio.get_running_loop().time()
        try:
            if remaining <= 0:
                raise asyncio.TimeoutError()
            return await asyncio.wait_for(aw, remaining)
        except asyncio.TimeoutError as exc:
            raise ConnectTimeout(self._params.timeout) from exc

    async def _next_chunk(self, chunks: AsyncIterator[str]) -> str:
        stall = self._params.stall_timeout
        if not stall:
            return await chunks.__anext__()
        try:
            return await asyncio.wait_for(chunks.__anext__(), stall)
        except asyncio.TimeoutError as exc:
            raise StreamStalled(stall) from exc

    async def _check_status(self, response: httpx.Response) -> None:
        code = response.status_code
        if 200 <= code < 300:
            self._log.debug('HTTP %d, content-type=%s', code, response.headers.get('content-type', '?'))
            return

        body = await self._read_error_body(response)
        message = error_message_from_body(body)
        self._log.error('HTTP %d from %s: %s', code, self._params.endpoint, message)

        if code == 401:
            raise AuthError(f'authentication failed (HTTP 401): {message}' if message else 'authentication failed (HTTP 401)')
        if code == 429:
            retry_after = parse_retry_after(response.headers.get('retry-after'))
            hint = f'; retry after {retry_after:g}s' if retry_after is not None else ''
            raise RateLimited(f'rate limited (HTTP 429){hint}', retry_after=retry_after)
        if 500 <= code < 600:
            raise ServerError(code, message)
        raise HttpError(code, message)

    async def _read_error_body(self, response: httpx.Response) -> bytes:
        body = bytearray()
        try:
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) >= ERROR_BODY_LIMIT:
                    break
        except httpx.HTTPError as exc:
            self._log.debug('could not read error body: %s', exc)
        return bytes(body[:ERROR_BODY_LIMIT])

    async def _read_fragments(self, response: httpx.Response, deadline: float) -> AsyncIterator[StreamFragment]:
        decoder = SSEDecoder()
        progress = _Progress()
        chunks = response.aiter_text().__aiter__()
        first = True

        while not progress.done:
            try:
                if first:
                    chunk = await self._until(chunks.__anext__(), deadline)
                    first = False
                else:
                    chunk = await self._next_chunk(chunks)
            except StopAsyncIteration:
                break
            except StreamStalled:
                if not progress.terminal:
                    raise
                # Finished already; the server just never closed the stream.
                self._log.debug('no [DONE] after finish_reason; closing idle stream')
                break
            trace_wire(self._log, 'chunk received', size=len(chunk), data=chunk[:200])
            for fragment in self._fragments(decoder.feed(chunk), progress):
                yield fragment

        if not progress.done:
            for fragment in self._fragments(decoder.close(), progress):
                yield fragment

        if progress.done or progress.terminal:
            self._log.info(
                'stream complete: %d fragment(s), %d malformed event(s) skipped',
                progress.index,
                self.malformed_events,
            )
            self._transition(ClientState.COMPLETE)
            return
        if progress.decoded == 0:
            raise MalformedStream(
                f'response contained no decodable event ({progress.events} event(s) received)'
            )
        raise StreamInterrupted('stream ended before the completion marker')

    def _fragments(self, events: List[ServerEvent], progress: _Progress) -> Iterator[StreamFragment]:
        for event in events:
            if progress.done:
                return
            progress.events += 1
            try:
                delta = decode_event(event)
            except MalformedEvent as exc:
                self.malformed_events += 1
                self._log.warning('skipping malformed event: %s', exc)
                continue
            progress.decoded += 1
            if delta.done:
                progress.done = True
                if not progress.terminal:
                    progress.terminal = True
                    progress.index += 1
                    yield StreamFragment('', terminal=True, index=progress.index - 1)
                return
            if delta.text or delta.finished:
                progress.terminal = progress.terminal or delta.finished
                progress.index += 1
                yield StreamFragment(delta.text, terminal=delta.finished, index=progress.index - 1)

    def _transition(self, new: ClientState) -> None:
        old, self._state = self._state, new
        self._log.info(
            'client state: %s -> %s',
            old.value,
            new.value,
            extra={'context': {'previous': old.value, 'state': new.value}},
        )
