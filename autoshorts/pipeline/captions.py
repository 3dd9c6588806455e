"""Caption file generation for rendered clips."""
from pathlib import Path
from typing import Iterable, List

from autoshorts.models import Segment
from autoshorts.utils.timestamps import format_srt_timestamp


def build_srt(segments: Iterable[Segment]) -> str:
    """
    Render segments as SRT text with times relative to the first segment.

    The clip file starts at the first segment's start, so every cue is
    shifted back by that amount.
    """
    ordered: List[Segment] = sorted(segments, key=lambda s: s.start)
    if not ordered:
        return ""

    origin = ordered[0].start
    lines: List[str] = []
    for i, seg in enumerate(ordered, 1):
        lines.append(str(i))
        lines.append(
            f"{format_srt_timestamp(seg.start - origin)} --> "
            f"{format_srt_timestamp(seg.end - origin)}"
        )
        lines.append(seg.text)
        lines.append("")
    return "\n".join(lines) + "\n"


def write_srt(segments: Iterable[Segment], path: Path) -> Path:
    """Write an SRT caption file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build_srt(segments), encoding="utf-8")
    return path
