"""Utility modules for StreamGuard."""

from streamguard.utils.text import fold, format_relative_time

__all__ = ["fold", "format_relative_time"]
