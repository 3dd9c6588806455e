"""Transcript parsing.

Turns ``"<timestamp> <text>"`` lines into contiguous segments. Malformed
lines are skipped rather than treated as errors; the skip list is kept so
callers (or strict mode) can see what was dropped.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from autoshorts.models import Segment
from autoshorts.utils.timestamps import parse_timestamp
from .config import PipelineConfig, DEFAULT_PIPELINE_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class SkippedLine:
    """A transcript line that produced no segment."""
    line_number: int  # 1-based
    reason: str
    content: str = ""

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "reason": self.reason,
            "content": self.content,
        }


@dataclass
class TranscriptParseResult:
    """Segments plus a record of every line that was dropped."""
    segments: List[Segment]
    skipped: List[SkippedLine] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class TranscriptParseError(ValueError):
    """Raised in strict mode when any transcript line had to be skipped."""

    def __init__(self, skipped: List[SkippedLine]):
        self.skipped = skipped
        first = skipped[0]
        super().__init__(
            f"{len(skipped)} transcript line(s) skipped; "
            f"first at line {first.line_number}: {first.reason}"
        )


def _split_line(raw: str) -> Optional[Tuple[str, str]]:
    """Split a line into (timestamp token, text) on the first space."""
    line = raw.strip()
    if not line or " " not in line:
        return None
    token, text = line.split(" ", 1)
    return token, text.strip()


def parse_transcript_with_report(
    lines: Iterable[str],
    strict: bool = False,
    config: Optional[PipelineConfig] = None,
) -> TranscriptParseResult:
    """
    Parse transcript lines into segments.

    Each segment ends where the next usable line begins; the last one (or
    one followed by a malformed timestamp) gets the default segment length.
    Input order is preserved, nothing is sorted.

    Args:
        lines: Transcript lines, conventionally ``"HH:MM:SS text"``
        strict: Raise TranscriptParseError if any line was skipped
        config: Pipeline configuration

    Returns:
        TranscriptParseResult with segments and skipped lines
    """
    config = config or DEFAULT_PIPELINE_CONFIG
    raw_lines = list(lines)

    # Structural pass: keep lines that have a timestamp/text shape
    candidates = []
    skipped: List[SkippedLine] = []
    for number, raw in enumerate(raw_lines, start=1):
        parts = _split_line(raw)
        if parts is None:
            if raw.strip():
                skipped.append(SkippedLine(number, "no separator", raw.strip()))
            else:
                skipped.append(SkippedLine(number, "blank line"))
            continue
        candidates.append((number, parts[0], parts[1], raw.strip()))

    segments: List[Segment] = []
    for i, (number, token, text, content) in enumerate(candidates):
        start = parse_timestamp(token)
        if start is None:
            skipped.append(SkippedLine(number, f"unparseable timestamp {token!r}", content))
            continue

        end = None
        if i + 1 < len(candidates):
            end = parse_timestamp(candidates[i + 1][1])
        if end is None or end <= start:
            end = start + config.default_segment_seconds

        segments.append(Segment(start=start, end=end, text=text))

    skipped.sort(key=lambda s: s.line_number)

    # Blank lines are formatting, not damage
    damaged = [s for s in skipped if s.reason != "blank line"]
    if damaged:
        logger.debug(f"Skipped {len(damaged)} malformed transcript lines")
    if strict and damaged:
        raise TranscriptParseError(damaged)

    logger.info(f"Parsed {len(segments)} segments from {len(raw_lines)} lines")
    return TranscriptParseResult(segments=segments, skipped=skipped)


def parse_transcript(
    lines: Iterable[str],
    config: Optional[PipelineConfig] = None,
) -> List[Segment]:
    """Permissive parse that returns only the segments."""
    return parse_transcript_with_report(lines, strict=False, config=config).segments


def load_transcript(path: str | Path) -> List[str]:
    """Read a transcript file into lines."""
    path = Path(path)
    return path.read_text(encoding="utf-8").splitlines()
