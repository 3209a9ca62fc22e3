"""Text helpers for matching and display."""

import time


def fold(text: str | None) -> str:
    """Lower-case text for loose comparison."""
    if not text:
        return ""
    return text.lower()


def format_relative_time(timestamp: int, now: float | None = None) -> str:
    """Format a Unix timestamp relative to now.

    Examples: "Just now", "1 minute ago", "3 hours ago", "2 days ago".
    Timestamps in the future are treated as just now.
    """
    if now is None:
        now = time.time()

    seconds = int(now - timestamp)
    if seconds < 60:
        return "Just now"

    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            suffix = "" if count == 1 else "s"
            return f"{count} {unit}{suffix} ago"

    return "Just now"
