"""
Timecode formatting helpers for rundown displays.

Durations are shown as ``M:SS`` (with centiseconds when fractional), front
times as ``HH:MM:SS`` and variance as ``Under M:SS`` / ``Over M:SS``.
"""

from __future__ import annotations

import math


def secs_to_mmss(total_seconds: float | None) -> str:
    """Format a duration as ``M:SS`` or ``M:SS.cc``. Non-positive values render ``0:00``."""
    if not total_seconds or total_seconds < 0:
        return "0:00"

    mins = int(total_seconds // 60)
    secs = total_seconds - mins * 60
    whole_secs = int(math.floor(secs))
    centisecs = round((secs - whole_secs) * 100)

    if centisecs > 0:
        return f"{mins}:{whole_secs:02d}.{centisecs:02d}"
    return f"{mins}:{whole_secs:02d}"


def secs_to_hhmmss(total_seconds: float | None) -> str:
    if not total_seconds or total_seconds < 0:
        return "00:00:00"

    seconds = int(total_seconds)
    hours, remainder = divmod(seconds, 3600)
    mins, secs = divmod(remainder, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"


def time_to_secs(time_str: str | None) -> int:
    """Convert ``HH:MM:SS`` or ``HH:MM`` to seconds.

    A two-part value whose first part is 24 or more is read as ``MM:SS``.
    Raises ValueError for non-numeric parts.
    """
    if not time_str:
        return 0

    try:
        parts = [int(p) for p in time_str.strip().split(":")]
    except ValueError as e:
        raise ValueError(f"Invalid time format '{time_str}'. Use HH:MM or HH:MM:SS") from e

    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    if len(parts) == 2:
        if parts[0] >= 24:
            return parts[0] * 60 + parts[1]
        return parts[0] * 3600 + parts[1] * 60
    raise ValueError(f"Invalid time format '{time_str}'. Use HH:MM or HH:MM:SS")


def parse_mmss(duration_str: str | None) -> float:
    """Parse ``M:SS`` / ``M:SS.cc`` (or a bare number of seconds) into seconds."""
    if not duration_str:
        return 0

    text = duration_str.strip()
    if ":" not in text:
        try:
            return float(text)
        except ValueError as e:
            raise ValueError(f"Invalid duration '{duration_str}'. Use M:SS") from e

    min_part, sec_part = text.split(":", 1)
    try:
        mins = int(min_part) if min_part else 0
        secs = float(sec_part) if sec_part else 0.0
    except ValueError as e:
        raise ValueError(f"Invalid duration '{duration_str}'. Use M:SS") from e
    return mins * 60 + secs


def parse_duration(value: str | int | None) -> int | None:
    """Accept whole seconds or ``M:SS`` text and return whole seconds."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(round(parse_mmss(value)))


def variance_display(variance_secs: int) -> str:
    """Positive variance is under time, negative is over."""
    if variance_secs >= 0:
        return f"Under {secs_to_mmss(variance_secs)}"
    return f"Over {secs_to_mmss(abs(variance_secs))}"


__all__ = [
    "secs_to_mmss",
    "secs_to_hhmmss",
    "time_to_secs",
    "parse_mmss",
    "parse_duration",
    "variance_display",
]
