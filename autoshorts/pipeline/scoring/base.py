"""Base interface for engagement scorers and external scoring backends."""
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from pydantic import BaseModel, Field

from autoshorts.models import Segment


class ScoringUnavailable(Exception):
    """The external scorer could not produce a usable answer."""
    pass


class ScoringTimeout(ScoringUnavailable):
    """The external scorer did not finish within the allowed time or polls."""
    pass


@dataclass
class ScoreRequestItem:
    """One segment as presented to an external scorer."""
    index: int  # position within the chunk
    start: str  # HH:MM:SS
    end: str    # HH:MM:SS
    text: str

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "start": self.start,
            "end": self.end,
            "text": self.text,
        }


class ScoreItem(BaseModel):
    """One score returned by an external scorer."""
    index: int = Field(..., ge=0)
    score: float = Field(..., ge=0.0, le=10.0)
    reason: str = ""


class Scorer(Protocol):
    """Contract shared by every engagement scoring strategy.

    Implementations return new segments, in input order, with ``score``
    set to a non-negative value. Higher means more likely to work as
    short-form content.
    """

    @property
    def name(self) -> str:
        """Strategy name identifier."""
        ...

    async def score(self, segments: Sequence[Segment]) -> List[Segment]:
        """Score every segment."""
        ...


class ScoringBackend(Protocol):
    """An external service that scores one chunk of segments per request."""

    async def score_chunk(self, items: Sequence[ScoreRequestItem]) -> List[ScoreItem]:
        """Score a chunk.

        Raises:
            ScoringUnavailable: On any transport, status or parse failure
        """
        ...
