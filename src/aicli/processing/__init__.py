"""Public API surface for aicli.processing."""
__all__ = [
    "denylist",
    "sanitizer",
    "text_ops",
]
