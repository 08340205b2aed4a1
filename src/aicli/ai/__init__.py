"""Chat message helpers and token estimation."""
