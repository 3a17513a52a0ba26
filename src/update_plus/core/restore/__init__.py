"""Restore engine, path rehoming and directory synchronization."""

from update_plus.core.restore.engine import RestoreEngine, prompt_confirmation
from update_plus.core.restore.sanitizer import PathSanitizer

__all__ = ["PathSanitizer", "RestoreEngine", "prompt_confirmation"]
