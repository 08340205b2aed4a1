from __future__ import annotations

"""
Static denylist of dangerous content patterns.

Each row pairs a compiled pattern with the action taken for inbound
(user-controlled) and outbound (model-controlled) text:

  * ``neutralize``: replace the match with the row's placeholder;
  * ``escape``:     rewrite the match with the row's escaper;
  * ``flag``:       record a security event, leave the text alone;
  * ``None``:       the row does not apply in that direction.

Rows that rewrite text never end in a look-ahead or word-boundary
assertion: a prefix of a match-free string must stay match-free, otherwise
re-truncating to the size ceiling could expose a new match.

New rows only need to be appended to ``DENYLIST``; the sanitizer walks the
table and has no per-rule control flow.
"""

import re
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Tuple

from aicli.constants import CONTROL_PLACEHOLDER, TOKEN_PLACEHOLDER
from aicli.core.models import Location

RuleAction = Literal['neutralize', 'escape', 'flag']


def escape_visible(fragment: str) -> str:
    """Render control characters as visible ``\\xNN`` / ``\\uNNNN`` text."""
    out: list[str] = []
    for ch in fragment:
        code = ord(ch)
        if code < 0x20 or 0x7F <= code <= 0x9F:
            out.append(f'\\x{code:02x}')
        elif 0x202A <= code <= 0x202E or 0x2066 <= code <= 0x2069:
            out.append(f'\\u{code:04x}')
        else:
            out.append(ch)
    return ''.join(out)


def escape_backslash(fragment: str) -> str:
    return '\\' + fragment


@dataclass(frozen=True)
class DenyRule:
    name: str
    pattern: re.Pattern[str]
    inbound: Optional[RuleAction]
    outbound: Optional[RuleAction]
    placeholder: str = CONTROL_PLACEHOLDER
    escaper: Optional[Callable[[str], str]] = None
    # A match preceded by an odd run of backslashes is already escaped.
    skip_if_escaped: bool = False
    shell: bool = False

    def action_for(self, location: Location) -> Optional[RuleAction]:
        return self.inbound if location == 'input' else self.outbound


DENYLIST: Tuple[DenyRule, ...] = (
    DenyRule(
        name='ansi_sequence',
        pattern=re.compile(
            r'\x1b(?:\[[0-?]*[ -/]*[@-~]'  # CSI
            r'|\][^\x07\x1b]*(?:\x07|\x1b\\)'  # OSC, BEL or ST terminated
            r'|[@-Z\\-_])'  # two-byte Fe sequences
        ),
        inbound='neutralize',
        outbound='escape',
        escaper=escape_visible,
    ),
    DenyRule(
        name='control_char',
        pattern=re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]'),
        inbound='neutralize',
        outbound='escape',
        escaper=escape_visible,
    ),
    DenyRule(
        name='bidi_override',
        pattern=re.compile('[\u202a-\u202e\u2066-\u2069]'),
        inbound='neutralize',
        outbound='escape',
        escaper=escape_visible,
    ),
    DenyRule(
        name='role_token',
        pattern=re.compile(r'<\|[A-Za-z0-9_]{1,40}\|>|\[/?INST\]|<</?SYS>>'),
        inbound='neutralize',
        outbound='flag',
        placeholder=TOKEN_PLACEHOLDER,
    ),
    DenyRule(
        name='prompt_override',
        pattern=re.compile(
            r'\b(?:ignore|disregard|forget)\s+(?:all\s+|any\s+)?(?:the\s+)?'
            r'(?:previous|prior|above|earlier)\s+(?:instructions|prompts|messages)',
            re.IGNORECASE,
        ),
        inbound='flag',
        outbound='flag',
    ),
    DenyRule(
        name='shell_substitution',
        pattern=re.compile(r'\$[({]|`'),
        inbound='flag',
        outbound='escape',
        escaper=escape_backslash,
        skip_if_escaped=True,
        shell=True,
    ),
    DenyRule(
        name='destructive_command',
        pattern=re.compile(
            r'\brm\s+-[a-z]*[rf][a-z]*\s+(?:/|~)'
            r'|\bmkfs(?:\.\w+)?\s'
            r'|:\(\)\s*\{\s*:\|:&\s*\};:'
            r'|\bdd\s+if=\S+\s+of=/dev/',
            re.IGNORECASE,
        ),
        inbound='flag',
        outbound='flag',
        shell=True,
    ),
    DenyRule(
        name='pipe_to_shell',
        pattern=re.compile(r'\b(?:curl|wget)\s[^\n|]*\|\s*(?:sudo\s+)?(?:ba|z)?sh\b'),
        inbound='flag',
        outbound='flag',
        shell=True,
    ),
)
