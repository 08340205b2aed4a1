"""Network side: SSE framing, the streaming client and the fragment handoff."""
