"""Segment selection.

Greedy pick of the highest scoring segments that satisfy the duration
window, up to the requested clip count.
"""
import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from autoshorts.models import ProcessingOptions, Segment
from .config import PipelineConfig, DEFAULT_PIPELINE_CONFIG

logger = logging.getLogger(__name__)


def min_segment_duration(options: ProcessingOptions, config: PipelineConfig) -> float:
    """Shortest acceptable segment: the user minimum, never below the floor."""
    return max(config.min_segment_seconds, options.min_clip_duration)


def select_segments(
    segments: Sequence[Segment],
    options: ProcessingOptions,
    config: Optional[PipelineConfig] = None,
) -> List[Segment]:
    """
    Select the most engaging segments.

    Ranking is a stable sort on score, so equal scores keep transcript
    order and the result is deterministic.

    Args:
        segments: Scored segments
        options: Processing options (duration bounds, clip count)
        config: Pipeline configuration

    Returns:
        Accepted segments with ``selected=True``, highest score first.
        May be empty.
    """
    config = config or DEFAULT_PIPELINE_CONFIG
    min_duration = min_segment_duration(options, config)
    max_duration = options.max_clip_duration

    ranked = sorted(segments, key=lambda s: s.score, reverse=True)

    selected: List[Segment] = []
    for seg in ranked:
        if len(selected) >= options.max_clip_count:
            break

        if seg.duration < min_duration or seg.duration > max_duration:
            continue

        selected.append(replace(seg, selected=True))

    if not selected:
        logger.info(
            f"No segment fits {min_duration:.0f}-{max_duration:.0f}s "
            f"among {len(segments)} candidates"
        )
    else:
        logger.info(f"Selected {len(selected)} of {len(segments)} segments")

    return selected
