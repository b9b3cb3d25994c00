"""
Utility helpers used by the migration tool.

This subpackage exposes convenience functions for structured logging and
the per-post fixups file.
"""

from .errors import ERRORS, report_error, report_ok
from .fixups import apply_fixups, load_fixups

__all__ = ["ERRORS", "report_error", "report_ok", "apply_fixups", "load_fixups"]
