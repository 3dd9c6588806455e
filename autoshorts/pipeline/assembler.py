"""Clip assembly - merges nearby selected segments into clip definitions."""
import logging
from typing import List, Optional, Sequence

from autoshorts.models import ClipDefinition, Segment, VideoMetadata
from .config import PipelineConfig, DEFAULT_PIPELINE_CONFIG

logger = logging.getLogger(__name__)


def clip_title(video: Optional[VideoMetadata], index: int) -> str:
    if video is not None and video.title:
        return f"{video.title} - Clip {index}"
    return f"Clip {index}"


def assemble_clips(
    selected: Sequence[Segment],
    video: Optional[VideoMetadata] = None,
    config: Optional[PipelineConfig] = None,
) -> List[ClipDefinition]:
    """
    Group selected segments into clips.

    Single left-to-right pass over start-sorted segments: a segment joins
    the current group when it begins less than ``merge_gap_seconds`` after
    the group's running end, otherwise the group is closed. No
    backtracking.

    Args:
        selected: Selected segments in any order
        video: Source video metadata used for titles
        config: Pipeline configuration

    Returns:
        Clip definitions numbered from 1 in chronological order
    """
    config = config or DEFAULT_PIPELINE_CONFIG

    clips: List[ClipDefinition] = []
    group: List[Segment] = []
    running_end = 0.0

    def close_group():
        index = len(clips) + 1
        clips.append(ClipDefinition(
            index=index,
            title=clip_title(video, index),
            segments=tuple(group),
        ))

    for seg in sorted(selected, key=lambda s: s.start):
        if not group or seg.start - running_end < config.merge_gap_seconds:
            group.append(seg)
            running_end = seg.end
            continue

        close_group()
        group = [seg]
        running_end = seg.end

    if group:
        close_group()

    logger.info(f"Assembled {len(clips)} clips from {len(selected)} segments")
    return clips
