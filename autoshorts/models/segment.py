"""Transcript segment model."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Segment:
    """One timestamped unit of transcript text.

    Records are immutable: the scorer and selector hand back new records
    (via ``dataclasses.replace``) with ``score`` / ``selected`` filled in.
    """
    start: float
    end: float
    text: str
    score: float = 0.0
    selected: bool = False

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
            "text": self.text,
            "score": self.score,
            "selected": self.selected,
        }

    def __repr__(self):
        return f"Segment({self.start:.2f}-{self.end:.2f}, score={self.score:.2f}, text={self.text[:30]!r})"
