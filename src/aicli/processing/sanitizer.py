from __future__ import annotations

"""
Two-way content sanitizer.

`Sanitizer.sanitize` runs the same five steps on inbound (prompt + files +
stdin) and outbound (model fragments) text; only the per-row actions of the
denylist differ between the two directions:

  1. truncate to the size ceiling;
  2. drop NUL characters;
  3. normalize line endings to LF;
  4. apply the denylist table until nothing more is rewritten, then record
     flag-only matches;
  5. truncate again, since escaping can grow the text.

The function is total and idempotent. Everything it changes or notices is
reported as a `SecurityEvent`, both in the returned `SanitizedText` and
through the injected recorder.

`OutputSanitizer` wraps the outbound pass for a stream of fragments.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from aicli.constants import SANITIZE_CEILING
from aicli.core.interfaces.security import SecurityRecorderProtocol
from aicli.core.interfaces.text import SanitizerProtocol
from aicli.core.models import Location, SanitizedText, SecurityEvent
from aicli.logging.helpers import get_logger
from aicli.processing.denylist import DENYLIST, DenyRule, RuleAction
from aicli.processing.text_ops import coerce_text, normalize_newlines, truncate_utf8
from aicli.security.events import NullSecurityRecorder, make_sample

_PAST_TENSE = {'neutralize': 'neutralized', 'escape': 'escaped', 'flag': 'flagged'}


def trailing_backslashes(text: str) -> int:
    return len(text) - len(text.rstrip('\\'))


def backslashes_before(text: str, start: int, context: str = '') -> int:
    """Length of the backslash run ending right before ``text[start]``.

    The run continues into *context* when it reaches the start of *text*.
    An odd run means the character at *start* is escaped; an even run is
    made of escaped backslashes and leaves it live.
    """
    i = start
    while i > 0 and text[i - 1] == '\\':
        i -= 1
    run = start - i
    if i == 0:
        run += trailing_backslashes(context)
    return run


class Sanitizer(SanitizerProtocol):
    """Strict on input, advisory on output."""

    _MAX_PASSES = 4
    _EVENTS_PER_RULE = 5

    def __init__(
        self,
        *,
        recorder: Optional[SecurityRecorderProtocol] = None,
        ceiling: int = SANITIZE_CEILING,
        rules: Sequence[DenyRule] = DENYLIST,
        escape_output: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._recorder: SecurityRecorderProtocol = recorder or NullSecurityRecorder()
        self._ceiling = int(ceiling)
        self._rules = tuple(rules)
        self._escape_output = bool(escape_output)
        self._log = logger or get_logger('sanitizer')

    @property
    def recorder(self) -> SecurityRecorderProtocol:
        return self._recorder

    @property
    def ceiling(self) -> int:
        return self._ceiling

    def sanitize(self, data: bytes | str | SanitizedText, location: Location = 'input', *, context: str = '') -> SanitizedText:
        """Return the sanitized form of *data*.

        Args:
            data: Raw bytes (decoded as UTF-8 with replacement) or text.
            location: ``'input'`` for user content, ``'output'`` for model text.
            context: Text already emitted right before *data*; only its
                trailing backslashes are consulted, to tell whether a
                leading match is escaped.
        """
        if isinstance(data, SanitizedText):
            data = data.text
        events: List[SecurityEvent] = []
        text = coerce_text(data)

        text = self._enforce_ceiling(text, location, events)

        nulls = text.count('\x00')
        if nulls:
            first = text.index('\x00')
            text = text.replace('\x00', '')
            events.append(SecurityEvent('null_byte', 'neutralized', location, first, f'{nulls} NUL byte(s) removed'))

        text = normalize_newlines(text)
        text = self._apply_rules(text, location, context, events)
        text = self._enforce_ceiling(text, location, events)

        for event in events:
            self._recorder.record(event)
        if events:
            self._log.debug('sanitized %s: %d event(s), %d chars kept', location, len(events), len(text))
        return SanitizedText(text=text, events=tuple(events))

    # ------------------------------------------------------------------ #
    #  Steps                                                               #
    # ------------------------------------------------------------------ #
    def _enforce_ceiling(self, text: str, location: Location, events: List[SecurityEvent]) -> str:
        kept, cut = truncate_utf8(text, self._ceiling)
        if cut:
            events.append(
                SecurityEvent(
                    'size_ceiling',
                    'truncated',
                    location,
                    len(kept),
                    make_sample(text, len(kept), len(text)),
                )
            )
        return kept

    def _action_for(self, rule: DenyRule, location: Location) -> Optional[RuleAction]:
        action = rule.action_for(location)
        if action == 'escape' and rule.shell and location == 'output' and not self._escape_output:
            return 'flag'
        return action

    def _apply_rules(self, text: str, location: Location, context: str, events: List[SecurityEvent]) -> str:
        tally: Dict[str, Tuple[int, str]] = {}

        for _ in range(self._MAX_PASSES):
            changed = False
            for rule in self._rules:
                action = self._action_for(rule, location)
                if action in ('neutralize', 'escape'):
                    text, hits = self._rewrite(rule, action, text, location, context, events, tally)
                    changed = changed or hits > 0
            if not changed:
                break

        for rule in self._rules:
            if self._action_for(rule, location) == 'flag':
                for match in rule.pattern.finditer(text):
                    self._note(rule, 'flagged', location, text, match, events, tally)

        for name, (count, action) in tally.items():
            if count > self._EVENTS_PER_RULE:
                extra = count - self._EVENTS_PER_RULE
                events.append(SecurityEvent(name, action, location, -1, f'{extra} more match(es) not itemized'))
        return text

    def _rewrite(
        self,
        rule: DenyRule,
        action: RuleAction,
        text: str,
        location: Location,
        context: str,
        events: List[SecurityEvent],
        tally: Dict[str, Tuple[int, str]],
    ) -> Tuple[str, int]:
        hits = 0

        def _replace(match: re.Match[str]) -> str:
            nonlocal hits
            start = match.start()
            if rule.skip_if_escaped and backslashes_before(text, start, context) % 2:
                return match.group(0)
            hits += 1
            self._note(rule, _PAST_TENSE[action], location, text, match, events, tally)
            if action == 'escape' and rule.escaper is not None:
                return rule.escaper(match.group(0))
            return rule.placeholder

        return rule.pattern.sub(_replace, text), hits

    def _note(
        self,
        rule: DenyRule,
        action: str,
        location: Location,
        text: str,
        match: re.Match[str],
        events: List[SecurityEvent],
        tally: Dict[str, Tuple[int, str]],
    ) -> None:
        count = tally.get(rule.name, (0, action))[0] + 1
        tally[rule.name] = (count, action)
        if count <= self._EVENTS_PER_RULE:
            events.append(
                SecurityEvent(rule.name, action, location, match.start(), make_sample(text, match.start(), match.end()))  # type: ignore[arg-type]
            )


class OutputSanitizer:
    """Outbound pass applied fragment by fragment.

    A trailing ``$`` or ``\\r`` is held back until the next fragment so that a
    ``$(`` or a CRLF split across two fragments is treated like the joined
    text. Only the parity of the backslash run that ends the emitted output
    is kept; it decides whether a match at the start of the next fragment is
    escaped. The size ceiling applies to the cumulative output: once
    reached, the rest of the stream is dropped and one event is recorded.
    """

    _CARRY = ('$', '\r')

    def __init__(self, sanitizer: Sanitizer, *, ceiling: Optional[int] = None) -> None:
        self._sanitizer = sanitizer
        self._ceiling = sanitizer.ceiling if ceiling is None else int(ceiling)
        self._pending = ''
        self._odd_backslashes = False
        self._emitted = 0
        self._capped = False

    @property
    def emitted_bytes(self) -> int:
        return self._emitted

    def feed(self, text: str) -> str:
        text = self._pending + text
        self._pending = ''
        if text.endswith(self._CARRY):
            text, self._pending = text[:-1], text[-1]
        return self._process(text)

    def flush(self) -> str:
        text, self._pending = self._pending, ''
        return self._process(text)

    def _process(self, text: str) -> str:
        if not text or self._capped:
            return ''
        clean = self._sanitizer.sanitize(text, 'output', context='\\' if self._odd_backslashes else '').text
        size = len(clean.encode('utf-8'))
        if self._emitted + size > self._ceiling:
            kept, _ = truncate_utf8(clean, self._ceiling - self._emitted)
            self._capped = True
            self._sanitizer.recorder.record(
                SecurityEvent(
                    'size_ceiling',
                    'truncated',
                    'output',
                    self._emitted,
                    f'output reached {self._ceiling} bytes; rest of the stream dropped',
                )
            )
            clean = kept
            size = len(clean.encode('utf-8'))
        self._emitted += size
        if clean:
            run = trailing_backslashes(clean)
            odd = bool(run % 2)
            self._odd_backslashes = self._odd_backslashes ^ odd if run == len(clean) else odd
        return clean
