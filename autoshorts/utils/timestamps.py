"""Timestamp parsing and formatting helpers."""
import re
from typing import Optional

_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(\d+):(\d+)$")


def parse_timestamp(token: str) -> Optional[float]:
    """
    Parse an ``H:MM:SS`` or ``MM:SS`` token into seconds.

    Returns None when the token does not look like a timestamp, so a
    genuine ``00:00:00`` (0.0) stays distinguishable from a parse failure.
    """
    if token is None:
        return None

    match = _TIMESTAMP_RE.match(token.strip())
    if not match:
        return None

    hours = int(match.group(1)) if match.group(1) is not None else 0
    minutes = int(match.group(2))
    seconds = int(match.group(3))

    return float(hours * 3600 + minutes * 60 + seconds)


def _split_seconds(total: int) -> tuple:
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return hours, minutes, secs


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS``, truncating any fraction."""
    total = int(max(0.0, seconds))
    hours, minutes, secs = _split_seconds(total)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds as an SRT cue time, ``HH:MM:SS,mmm``."""
    total_ms = int(round(max(0.0, seconds) * 1000))
    total, ms = divmod(total_ms, 1000)
    hours, minutes, secs = _split_seconds(total)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"
