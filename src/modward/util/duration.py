"""
Mute duration parsing and formatting.

Durations are written as ``<number><unit>`` where unit is ``m`` (minutes),
``h`` (hours) or ``d`` (days), e.g. ``10m`` or ``2d``. Discord caps member
timeouts at 28 days.
"""

from __future__ import annotations

import datetime
import re
from typing import Optional

DURATION_PATTERN = re.compile(r"^(\d+)([mhd])$")

UNIT_SECONDS = {
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}

MAX_TIMEOUT = datetime.timedelta(days=28)

PERMANENT_DURATION = "Permanent"


def looks_like_duration(token: str) -> bool:
    """A token starting with a digit is meant as a duration."""
    return bool(token) and token[0].isdigit()


def parse_duration(token: str) -> datetime.timedelta:
    """Parse a duration token.

    Raises:
        ValueError: If the token is malformed, zero, or longer than 28 days.
    """
    match = DURATION_PATTERN.match(token.strip().lower())
    if match is None:
        raise ValueError("Invalid duration format. Use a number followed by m, h or d (e.g. 10m, 2h, 1d).")
    amount, unit = int(match.group(1)), match.group(2)
    if amount <= 0:
        raise ValueError("Duration must be greater than zero.")
    duration = datetime.timedelta(seconds=amount * UNIT_SECONDS[unit])
    if duration > MAX_TIMEOUT:
        raise ValueError("Duration cannot be longer than 28 days.")
    return duration


def format_duration(duration: Optional[datetime.timedelta]) -> str:
    """Human-readable form of a duration; None means permanent."""
    if duration is None:
        return PERMANENT_DURATION
    seconds = int(duration.total_seconds())
    if seconds % UNIT_SECONDS["d"] == 0:
        days = seconds // UNIT_SECONDS["d"]
        return f"{days} day{'s' if days != 1 else ''}"
    if seconds % UNIT_SECONDS["h"] == 0:
        hours = seconds // UNIT_SECONDS["h"]
        return f"{hours} hour{'s' if hours != 1 else ''}"
    minutes = max(1, seconds // 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"
