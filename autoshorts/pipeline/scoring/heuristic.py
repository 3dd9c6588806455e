"""Keyword/punctuation heuristic for engagement scoring."""
import logging
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from autoshorts.models import Segment
from ..config import PipelineConfig, DEFAULT_PIPELINE_CONFIG

logger = logging.getLogger(__name__)


class HeuristicScorer:
    """Scores text locally from keywords, length and punctuation.

    The small random jitter only breaks ties; pass a seeded generator to
    make scores reproducible.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.config = config or DEFAULT_PIPELINE_CONFIG
        self.rng = rng if rng is not None else np.random.default_rng()
        self._keywords = tuple(k.lower() for k in self.config.keywords)

    @property
    def name(self) -> str:
        return "heuristic"

    def count_keywords(self, text: str) -> int:
        """Number of distinct engagement keywords found as substrings."""
        lowered = text.lower()
        return sum(1 for keyword in self._keywords if keyword in lowered)

    def score_text(self, text: str) -> float:
        config = self.config

        score = config.keyword_weight * self.count_keywords(text)
        score += min(len(text) / config.length_divisor, config.length_cap)

        if "?" in text:
            score += config.question_bonus
        if "!" in text:
            score += config.exclamation_bonus

        if config.jitter > 0:
            score += float(self.rng.random()) * config.jitter

        return score

    async def score(self, segments: Sequence[Segment]) -> List[Segment]:
        scored = [replace(seg, score=self.score_text(seg.text)) for seg in segments]
        logger.info(f"Heuristic scored {len(scored)} segments")
        return scored
