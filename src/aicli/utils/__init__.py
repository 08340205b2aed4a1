"""
aicli.utils – Small shared utilities (path containment, labels).
"""
from .paths import display_label, is_within_dir

__all__ = ["display_label", "is_within_dir"]
