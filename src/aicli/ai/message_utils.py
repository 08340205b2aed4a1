from __future__ import annotations

"""
Chat message composition for the completion request.

The request always carries exactly one user message holding the sanitized
input (prompt, file sections and stdin section). A system message precedes
it only when a non-blank system prompt is configured.
"""

from typing import Dict, List


def build_chat_messages(*, system_prompt: str, user_prompt: str) -> List[Dict[str, str]]:
    """Return the ``messages`` array for a chat-completion body.

    Args:
        system_prompt: Configured system prompt; blank values are dropped.
        user_prompt: Sanitized user content, sent as-is.

    Returns:
        ``[{"role": "system", ...}, {"role": "user", ...}]`` or just the
        user entry.
    """
    messages: List[Dict[str, str]] = []
    if system_prompt and system_prompt.strip():
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages
