from __future__ import annotations
"""
Token budget estimator utilities.

Only used for diagnostics: the estimate is logged before the request is
sent so that oversized prompts are easy to spot with ``-v``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from aicli.logging.helpers import get_logger


@dataclass(frozen=True)
class TokenEstimation:
    tokens_in: int
    chars_in: int


class TokenBudgetEstimator:
    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or get_logger('ai.tokens')

    def _safe_len_tokens(self, text: str, *, model: str) -> int:
        try:
            import tiktoken
            try:
                enc = tiktoken.encoding_for_model(model)
            except KeyError:
                enc = tiktoken.get_encoding('cl100k_base')
            return len(enc.encode(text, disallowed_special=()))
        except Exception as exc:
            # Fallback: ~4 chars per token
            self._log.debug('tiktoken unavailable (%s); using character heuristic', exc)
            return max(1, (len(text) + 3) // 4)

    def estimate_messages_tokens(self, messages: Iterable[Mapping[str, str]], *, model: str) -> TokenEstimation:
        text = '\n'.join(f"{m.get('role', '')}: {m.get('content', '')}" for m in messages)
        return TokenEstimation(tokens_in=self._safe_len_tokens(text, model=model), chars_in=len(text))


