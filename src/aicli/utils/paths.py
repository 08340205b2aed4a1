# src/aicli/utils/paths.py
"""
paths – Small, centralized path helpers for aicli.

Provides:
  • is_within_dir(path, parent)  – containment check on resolved paths
  • display_label(path, roots)   – short label used in provenance delimiters
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence


def is_within_dir(path: Path, parent: Path) -> bool:
    """Return True if the resolved *path* is *parent* or lies inside it."""
    try:
        path.resolve().relative_to(Path(parent).resolve())
        return True
    except ValueError:
        return False


def display_label(path: Path, roots: Sequence[Path]) -> str:
    """Return *path* relative to the first root containing it, else absolute."""
    for root in roots:
        if is_within_dir(path, root):
            rel = path.resolve().relative_to(root.resolve())
            return rel.as_posix() if str(rel) != '.' else path.name
    return os.fspath(path)
