"""Small numeric and time formatting helpers used by results and reports."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(part / total * 100)


def format_time(seconds: int) -> str:
    """Format seconds as ``m:ss`` or ``h:mm:ss`` once an hour is reached."""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
