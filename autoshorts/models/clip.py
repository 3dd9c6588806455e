"""Clip definition and source video metadata."""
from dataclasses import dataclass
from typing import Optional, Tuple

from autoshorts.models.segment import Segment


@dataclass(frozen=True)
class VideoMetadata:
    """Descriptive metadata for the source video."""
    title: Optional[str] = None
    video_id: Optional[str] = None


@dataclass(frozen=True)
class ClipDefinition:
    """A merged span of selected segments destined to become one output file."""
    index: int
    title: str
    segments: Tuple[Segment, ...]

    def __post_init__(self):
        if not self.segments:
            raise ValueError("A clip definition needs at least one segment")
        if self.index < 1:
            raise ValueError(f"Clip index must be >= 1, got {self.index}")

    @property
    def start(self) -> float:
        return self.segments[0].start

    @property
    def end(self) -> float:
        return max(s.end for s in self.segments)

    @property
    def duration(self) -> float:
        """Span from the first member's start to the last member's end."""
        return self.segments[-1].end - self.segments[0].start

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "title": self.title,
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
            "segments": [s.to_dict() for s in self.segments],
        }

    def __repr__(self):
        return (
            f"ClipDefinition(#{self.index} {self.start:.2f}-{self.end:.2f}, "
            f"segments={len(self.segments)})"
        )
