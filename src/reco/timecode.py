"""Conversion between subtitle timecodes and integer milliseconds.

All times in reco are integer millisecond offsets from the start of the
media. There is no timezone or calendar meaning here, only duration
arithmetic.
"""

from __future__ import annotations

import re

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE

_TIMESTAMP_PATTERN = r"(\d{{2,}}):(\d{{2}}):(\d{{2}})[{sep}](\d{{3}})"


def parse_timecode(
    hours: int | str,
    minutes: int | str,
    seconds: int | str,
    millis: int | str,
) -> int:
    """Combine timecode fields into a millisecond offset.

    Fields may be ints or the digit strings captured from a timing line.
    ``millis`` is always thousandths of a second.

    Returns:
        ``hours*3600000 + minutes*60000 + seconds*1000 + millis``
    """
    return (
        int(hours) * MS_PER_HOUR
        + int(minutes) * MS_PER_MINUTE
        + int(seconds) * MS_PER_SECOND
        + int(millis)
    )


def split_milliseconds(ms: int) -> tuple[int, int, int, int]:
    """Split a millisecond offset into (hours, minutes, seconds, millis)."""
    if ms < 0:
        raise ValueError(f"Negative time offset: {ms}")
    hours, rest = divmod(ms, MS_PER_HOUR)
    minutes, rest = divmod(rest, MS_PER_MINUTE)
    seconds, millis = divmod(rest, MS_PER_SECOND)
    return hours, minutes, seconds, millis


def format_milliseconds(ms: int, separator: str = ".") -> str:
    """Format a millisecond offset as ``HH:MM:SS.mmm``.

    Hours are zero-padded to two digits and grow wider past 99.

    Args:
        ms: Non-negative millisecond offset
        separator: Character between seconds and millis ("," for SRT)

    Returns:
        Canonical timecode string
    """
    hours, minutes, seconds, millis = split_milliseconds(ms)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}{separator}{millis:03d}"


def parse_timestamp(text: str, separator: str = ".") -> int:
    """Parse a full ``HH:MM:SS.mmm`` timestamp back into milliseconds.

    Args:
        text: Timestamp string
        separator: Character between seconds and millis

    Raises:
        ValueError: If the text is not a timestamp
    """
    pattern = _TIMESTAMP_PATTERN.format(sep=re.escape(separator))
    match = re.fullmatch(pattern, text.strip())
    if not match:
        raise ValueError(f"Invalid timestamp: {text!r}")
    return parse_timecode(*match.groups())


def format_duration(ms: int) -> str:
    """Short display form of a duration: ``H:MM:SS`` or ``M:SS``."""
    hours, minutes, seconds, _ = split_milliseconds(ms)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
