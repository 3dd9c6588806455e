"""Engagement scoring strategies.

The strategy is picked once from explicit configuration; the rest of the
pipeline only sees the Scorer contract.
"""
import logging
from typing import Optional

import numpy as np

from autoshorts.config import Settings
from ..config import PipelineConfig, DEFAULT_PIPELINE_CONFIG
from .base import (
    Scorer,
    ScoringBackend,
    ScoreItem,
    ScoreRequestItem,
    ScoringTimeout,
    ScoringUnavailable,
)
from .backends import GeminiScoringBackend, HttpScoringBackend
from .heuristic import HeuristicScorer
from .model_assisted import ModelAssistedScorer, chunk_segments

logger = logging.getLogger(__name__)


def build_scorer(
    settings: Settings,
    rng: Optional[np.random.Generator] = None,
    config: Optional[PipelineConfig] = None,
) -> Scorer:
    """
    Build the scorer named by ``settings.scoring_strategy``.

    A model strategy without credentials or an endpoint degrades to the
    heuristic with a warning.
    """
    config = config or DEFAULT_PIPELINE_CONFIG
    if rng is None:
        rng = np.random.default_rng(settings.scoring_seed)

    heuristic = HeuristicScorer(rng=rng, config=config)
    strategy = settings.scoring_strategy

    if strategy == "gemini":
        if not settings.gemini_api_key:
            logger.warning("gemini_api_key not configured, using heuristic scoring")
            return heuristic
        backend = GeminiScoringBackend(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.scorer_timeout_seconds,
        )
    elif strategy == "http":
        if not settings.scoring_service_url:
            logger.warning("scoring_service_url not configured, using heuristic scoring")
            return heuristic
        backend = HttpScoringBackend(
            endpoint=settings.scoring_service_url,
            api_key=settings.scoring_service_api_key,
            timeout=settings.scorer_timeout_seconds,
            poll_interval=settings.scorer_poll_interval_seconds,
            max_poll_attempts=settings.scorer_poll_max_attempts,
        )
    else:
        return heuristic

    return ModelAssistedScorer(
        backend=backend,
        fallback=heuristic,
        config=config,
        max_concurrency=settings.scorer_max_concurrency,
    )


__all__ = [
    "Scorer",
    "ScoringBackend",
    "ScoreItem",
    "ScoreRequestItem",
    "ScoringTimeout",
    "ScoringUnavailable",
    "GeminiScoringBackend",
    "HttpScoringBackend",
    "HeuristicScorer",
    "ModelAssistedScorer",
    "chunk_segments",
    "build_scorer",
]
