"""Model-assisted engagement scoring with per-chunk heuristic fallback."""
import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from autoshorts.models import Segment
from autoshorts.utils.timestamps import format_timestamp
from ..config import PipelineConfig, DEFAULT_PIPELINE_CONFIG
from .base import ScoreRequestItem, ScoringBackend, ScoringUnavailable
from .heuristic import HeuristicScorer

logger = logging.getLogger(__name__)


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Rough token count for budget purposes."""
    return len(text) // chars_per_token


def chunk_segments(
    segments: Sequence[Segment],
    max_tokens: int,
    chars_per_token: int = 4,
) -> List[List[int]]:
    """
    Group segment positions into chunks that fit a token budget.

    A chunk closes when the next segment would push it past the budget. A
    single segment larger than the budget still gets a chunk of its own.

    Returns:
        List of chunks, each a list of positions into ``segments``
    """
    chunks: List[List[int]] = []
    current: List[int] = []
    current_tokens = 0

    for position, seg in enumerate(segments):
        tokens = estimate_tokens(seg.text, chars_per_token)
        if current and current_tokens + tokens > max_tokens:
            chunks.append(current)
            current = []
            current_tokens = 0
        current.append(position)
        current_tokens += tokens

    if current:
        chunks.append(current)

    return chunks


class ModelAssistedScorer:
    """Scores segments with an external model, one request per chunk.

    Any index the model leaves out, and every index of a chunk whose request
    fails, is scored by the heuristic instead (clamped to the model's 0-10
    range).
    """

    def __init__(
        self,
        backend: ScoringBackend,
        fallback: Optional[HeuristicScorer] = None,
        config: Optional[PipelineConfig] = None,
        max_concurrency: int = 2,
    ):
        self.backend = backend
        self.config = config or DEFAULT_PIPELINE_CONFIG
        self.fallback = fallback or HeuristicScorer(config=self.config)
        self.max_concurrency = max(1, max_concurrency)

    @property
    def name(self) -> str:
        return f"model:{type(self.backend).__name__}"

    def _fallback_score(self, seg: Segment) -> float:
        return min(max(self.fallback.score_text(seg.text), 0.0), self.config.model_score_max)

    async def _score_chunk(self, chunk: Sequence[Segment]) -> List[float]:
        items = [
            ScoreRequestItem(
                index=i,
                start=format_timestamp(seg.start),
                end=format_timestamp(seg.end),
                text=seg.text,
            )
            for i, seg in enumerate(chunk)
        ]

        try:
            response = await self.backend.score_chunk(items)
        except ScoringUnavailable as e:
            logger.warning(
                f"External scoring unavailable for chunk of {len(chunk)} segments, "
                f"using heuristic: {e}"
            )
            response = []
        except Exception as e:
            logger.warning(
                f"External scorer failed unexpectedly for chunk of {len(chunk)} segments, "
                f"using heuristic: {type(e).__name__}: {e}"
            )
            response = []

        by_index: Dict[int, float] = {}
        for item in response:
            if 0 <= item.index < len(chunk):
                by_index[item.index] = item.score

        missing = len(chunk) - len(by_index)
        if response and missing:
            logger.warning(f"Scorer omitted {missing} of {len(chunk)} segments, using heuristic")

        return [
            by_index[i] if i in by_index else self._fallback_score(seg)
            for i, seg in enumerate(chunk)
        ]

    async def score(self, segments: Sequence[Segment]) -> List[Segment]:
        segments = list(segments)
        if not segments:
            return []

        chunks = chunk_segments(
            segments, self.config.max_tokens_per_chunk, self.config.chars_per_token
        )
        logger.info(f"Scoring {len(segments)} segments in {len(chunks)} chunks")

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(positions: List[int]) -> List[float]:
            async with semaphore:
                return await self._score_chunk([segments[p] for p in positions])

        results = await asyncio.gather(*(run(positions) for positions in chunks))

        scores = [0.0] * len(segments)
        for positions, chunk_scores in zip(chunks, results):
            for position, value in zip(positions, chunk_scores):
                scores[position] = value

        return [replace(seg, score=value) for seg, value in zip(segments, scores)]
