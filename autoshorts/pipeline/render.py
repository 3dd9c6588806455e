"""Clip rendering.

A clip definition becomes a playable vertical file through four strictly
sequential stages: extract, caption, enhance, reformat. Caption and enhance
are optional. Each stage reads the previous artifact and writes a new one
in the clip's work directory; inputs (including the shared source video)
are never modified or deleted here.
"""
import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from autoshorts.config import settings
from autoshorts.models import ClipDefinition, ProcessingOptions
from autoshorts.utils import ffmpeg
from .captions import write_srt

logger = logging.getLogger(__name__)


class RenderStage(str, enum.Enum):
    """Render stage enumeration, in execution order."""
    EXTRACT = "extract"
    CAPTION = "caption"
    ENHANCE = "enhance"
    REFORMAT = "reformat"


class RenderFailure(Exception):
    """A render stage failed for one clip. The original error is ``cause``."""

    def __init__(self, clip_index: int, stage: RenderStage, cause: BaseException):
        self.clip_index = clip_index
        self.stage = stage
        self.cause = cause
        super().__init__(f"Clip {clip_index} failed at {stage.value}: {cause}")


class RenderCancelled(Exception):
    """Rendering stopped before a stage because cancellation was requested."""

    def __init__(self, clip_index: int, stage: RenderStage):
        self.clip_index = clip_index
        self.stage = stage
        super().__init__(f"Clip {clip_index} cancelled before {stage.value}")


@dataclass
class RenderResult:
    """Outcome of a successful render."""
    clip_index: int
    output_path: Path
    stages: List[RenderStage] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)
    width: int = 0
    height: int = 0
    has_captions: bool = False

    def to_dict(self) -> dict:
        return {
            "clip_index": self.clip_index,
            "output_path": str(self.output_path),
            "stages": [s.value for s in self.stages],
            "artifacts": [str(a) for a in self.artifacts],
            "width": self.width,
            "height": self.height,
            "has_captions": self.has_captions,
        }


def stage_output_path(work_dir: Path, prefix: str, input_path: Optional[Path] = None) -> Path:
    """Unique artifact name for a stage, derived from its input's stem."""
    if input_path is None:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return work_dir / f"{prefix}_{stamp}_{uuid.uuid4().hex}.mp4"
    return work_dir / f"{prefix}_{input_path.stem}_{uuid.uuid4().hex}.mp4"


class ClipRenderer:
    """Runs the render stages for one clip at a time."""

    def __init__(
        self,
        stage_timeout: Optional[float] = None,
        music_path: Optional[Path] = None,
        target_width: int = None,
        target_height: int = None,
    ):
        self.stage_timeout = stage_timeout
        self.music_path = Path(music_path) if music_path else None
        self.target_width = target_width or settings.vertical_width
        self.target_height = target_height or settings.vertical_height

    @classmethod
    def from_settings(cls) -> "ClipRenderer":
        return cls(
            stage_timeout=settings.render_stage_timeout_seconds,
            music_path=settings.background_music_path,
        )

    def plan(self, options: ProcessingOptions) -> List[RenderStage]:
        """Stages that will run for these options."""
        stages = [RenderStage.EXTRACT]
        if options.auto_captions:
            stages.append(RenderStage.CAPTION)
        if options.apply_enhancements or options.add_background_music:
            stages.append(RenderStage.ENHANCE)
        stages.append(RenderStage.REFORMAT)
        return stages

    async def extract(self, source_path: Path, clip: ClipDefinition, work_dir: Path) -> Path:
        duration = clip.duration
        if duration <= 0:
            raise ffmpeg.FFmpegError(f"Invalid clip span: duration {duration:.2f}s")

        info = await ffmpeg.get_video_info(source_path)
        if info.duration > 0 and clip.start >= info.duration:
            raise ffmpeg.FFmpegError(
                f"Clip starts at {clip.start:.2f}s but source is only {info.duration:.2f}s long"
            )

        output_path = stage_output_path(work_dir, "clip")
        return await ffmpeg.export_clip(
            source_path, output_path,
            clip.start, clip.start + duration,
            timeout=self.stage_timeout,
        )

    async def caption(self, clip_path: Path, clip: ClipDefinition, work_dir: Path) -> Path:
        if not clip.segments:
            return clip_path

        subtitle_path = write_srt(clip.segments, work_dir / f"{clip_path.stem}.srt")
        output_path = stage_output_path(work_dir, "captioned", clip_path)
        return await ffmpeg.burn_subtitles(
            clip_path, subtitle_path, output_path, timeout=self.stage_timeout
        )

    def _music_for(self, options: ProcessingOptions) -> Optional[Path]:
        if not options.add_background_music:
            return None
        if self.music_path is None or not self.music_path.exists():
            logger.warning("Background music requested but no music file is configured")
            return None
        return self.music_path

    async def enhance(self, clip_path: Path, options: ProcessingOptions, work_dir: Path) -> Path:
        info = await ffmpeg.get_video_info(clip_path)
        output_path = stage_output_path(work_dir, "enhanced", clip_path)
        return await ffmpeg.enhance_clip(
            clip_path, output_path,
            apply_visual=options.apply_enhancements,
            has_audio=info.has_audio,
            music_path=self._music_for(options),
            music_volume=options.music_volume_percent / 100.0,
            timeout=self.stage_timeout,
        )

    async def reformat(self, clip_path: Path, options: ProcessingOptions, work_dir: Path) -> Path:
        info = await ffmpeg.get_video_info(clip_path)
        if info.aspect_ratio <= 0:
            raise ffmpeg.FFmpegError(f"Cannot reformat {info.width}x{info.height} video")
        logger.debug(f"Reformatting {clip_path.name} (aspect {info.aspect_ratio:.2f})")

        output_path = stage_output_path(work_dir, "shorts", clip_path)
        return await ffmpeg.convert_to_vertical(
            clip_path, output_path,
            info.width, info.height,
            auto_zoom=options.auto_zoom_vertical,
            timeout=self.stage_timeout,
            target_width=self.target_width,
            target_height=self.target_height,
        )

    async def render(
        self,
        source_path: str | Path,
        clip: ClipDefinition,
        options: ProcessingOptions,
        work_dir: Path,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[Callable[[float, str], Awaitable[None]]] = None,
    ) -> RenderResult:
        """
        Render one clip definition.

        Args:
            source_path: Source video (read only)
            clip: Clip to render
            options: Processing options
            work_dir: Directory owned by this clip for its artifacts
            cancel_event: Checked before each stage
            progress_callback: Optional async callback(pct, message)

        Returns:
            RenderResult for the final artifact

        Raises:
            RenderFailure: A stage failed; ``stage`` and ``cause`` say where and why
            RenderCancelled: Cancellation was requested between stages
        """
        source_path = Path(source_path)
        work_dir = Path(work_dir)
        work_dir.mkdir(parents=True, exist_ok=True)

        stages = self.plan(options)
        result = RenderResult(clip_index=clip.index, output_path=source_path)
        current = source_path

        for position, stage in enumerate(stages):
            if cancel_event is not None and cancel_event.is_set():
                raise RenderCancelled(clip.index, stage)

            if progress_callback:
                await progress_callback(
                    100 * position / len(stages), f"Clip {clip.index}: {stage.value}"
                )
            logger.info(f"Clip {clip.index}: {stage.value} ({current.name})")

            try:
                if stage == RenderStage.EXTRACT:
                    output = await self.extract(current, clip, work_dir)
                elif stage == RenderStage.CAPTION:
                    output = await self.caption(current, clip, work_dir)
                elif stage == RenderStage.ENHANCE:
                    output = await self.enhance(current, options, work_dir)
                else:
                    output = await self.reformat(current, options, work_dir)
            except Exception as e:
                raise RenderFailure(clip.index, stage, e) from e

            result.stages.append(stage)
            if output != current:
                result.artifacts.append(output)
                if stage == RenderStage.CAPTION:
                    result.has_captions = True
            current = output

        result.output_path = current
        result.width = self.target_width
        result.height = self.target_height

        if progress_callback:
            await progress_callback(100, f"Clip {clip.index}: done")
        return result
