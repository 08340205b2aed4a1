"""Logging helpers for aicli (stderr only)."""
