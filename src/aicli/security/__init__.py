"""Security event recording."""
