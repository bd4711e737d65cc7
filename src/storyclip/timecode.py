"""SRT-style ``HH:MM:SS,mmm`` timestamp formatting and parsing."""

import re

from storyclip.errors import InvalidInputError

_TIMESTAMP_RE = re.compile(r"^\s*(\d{2,}):([0-5]\d):([0-5]\d),(\d{3})\s*$")


def format_timestamp(seconds: float) -> str:
    """Format *seconds* as ``HH:MM:SS,mmm``.

    The value is rounded to the nearest millisecond before splitting, so
    ``2.3`` renders as ``00:00:02,300`` rather than ``00:00:02,299``.
    """
    if seconds < 0:
        raise InvalidInputError(f"cannot format negative timestamp {seconds}")
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1_000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"


def parse_timestamp(value: str) -> float:
    """Parse an ``HH:MM:SS,mmm`` string into float seconds."""
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise InvalidInputError(f"'{value}' is not an HH:MM:SS,mmm timestamp")
    hours, minutes, secs, ms = (int(g) for g in match.groups())
    total_ms = hours * 3_600_000 + minutes * 60_000 + secs * 1_000 + ms
    return total_ms / 1000.0
