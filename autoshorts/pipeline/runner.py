"""Pipeline Runner.

Orchestrates transcript analysis and clip rendering for one source video.
"""
import asyncio
import logging
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional

from autoshorts.config import settings
from autoshorts.models import ClipDefinition, ProcessingOptions, Segment, VideoMetadata
from .assembler import assemble_clips
from .config import PipelineConfig, DEFAULT_PIPELINE_CONFIG
from .debug_artifacts import write_debug_json
from .render import ClipRenderer, RenderCancelled, RenderFailure, RenderResult
from .scoring import Scorer, build_scorer
from .selector import select_segments
from .transcript import SkippedLine, parse_transcript_with_report

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], Awaitable[None]]


@dataclass
class AnalysisResult:
    """Everything decided before rendering starts."""
    segments: List[Segment]
    scored: List[Segment]
    selected: List[Segment]
    clips: List[ClipDefinition]
    skipped: List[SkippedLine] = field(default_factory=list)
    scorer_name: str = ""

    def to_dict(self) -> dict:
        return {
            "scorer": self.scorer_name,
            "segment_count": len(self.segments),
            "skipped_lines": len(self.skipped),
            "selected": [s.to_dict() for s in self.selected],
            "clips": [c.to_dict() for c in self.clips],
        }


@dataclass
class ClipOutcome:
    """Per-clip render report."""
    clip: ClipDefinition
    status: str  # "completed", "failed", "cancelled"
    output_path: Optional[Path] = None
    stage: Optional[str] = None  # Stage that failed or was not started
    error: Optional[str] = None
    cause: Optional[BaseException] = None
    result: Optional[RenderResult] = None

    def to_dict(self) -> dict:
        return {
            "clip_index": self.clip.index,
            "title": self.clip.title,
            "status": self.status,
            "output_path": str(self.output_path) if self.output_path else None,
            "stage": self.stage,
            "error": self.error,
            "stages": [s.value for s in self.result.stages] if self.result else [],
        }


@dataclass
class PipelineResult:
    """Result from pipeline execution."""
    analysis: AnalysisResult
    outcomes: List[ClipOutcome] = field(default_factory=list)

    @property
    def completed(self) -> List[ClipOutcome]:
        return [o for o in self.outcomes if o.status == "completed"]

    @property
    def failed(self) -> List[ClipOutcome]:
        return [o for o in self.outcomes if o.status == "failed"]

    def to_dict(self) -> dict:
        return {
            **self.analysis.to_dict(),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


async def analyze_transcript(
    lines: Iterable[str],
    options: ProcessingOptions,
    scorer: Scorer,
    video: Optional[VideoMetadata] = None,
    config: Optional[PipelineConfig] = None,
    strict: bool = False,
) -> AnalysisResult:
    """
    Parse, score, select and assemble.

    An empty clip list is a normal outcome when nothing fits the options.
    """
    config = config or DEFAULT_PIPELINE_CONFIG

    parsed = parse_transcript_with_report(lines, strict=strict, config=config)
    scored = await scorer.score(parsed.segments)
    selected = select_segments(scored, options, config)
    clips = assemble_clips(selected, video, config)

    return AnalysisResult(
        segments=parsed.segments,
        scored=scored,
        selected=selected,
        clips=clips,
        skipped=parsed.skipped,
        scorer_name=scorer.name,
    )


def output_filename(video: Optional[VideoMetadata], clip: ClipDefinition) -> str:
    """Final file name for a rendered clip."""
    base = "video"
    if video is not None:
        base = video.video_id or video.title or base
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", base).strip("_") or "video"
    return f"{slug}_clip_{clip.index:02d}.mp4"


async def _render_one(
    renderer: ClipRenderer,
    semaphore: asyncio.Semaphore,
    source_path: Path,
    clip: ClipDefinition,
    options: ProcessingOptions,
    output_dir: Path,
    work_root: Path,
    video: Optional[VideoMetadata],
    cancel_event: Optional[asyncio.Event],
    progress_callback: Optional[ProgressCallback],
) -> ClipOutcome:
    async with semaphore:
        if cancel_event is not None and cancel_event.is_set():
            return ClipOutcome(clip=clip, status="cancelled", stage="extract")

        work_dir = Path(tempfile.mkdtemp(prefix=f"clip{clip.index}_", dir=work_root))
        try:
            result = await renderer.render(
                source_path, clip, options, work_dir,
                cancel_event=cancel_event,
                progress_callback=progress_callback,
            )
            final_path = output_dir / output_filename(video, clip)
            try:
                shutil.move(str(result.output_path), str(final_path))
            except OSError as e:
                logger.error(f"Clip {clip.index} could not be moved to {final_path}: {e}")
                return ClipOutcome(
                    clip=clip, status="failed", stage="finalize",
                    error=str(e), cause=e, result=result,
                )
            result.output_path = final_path

            logger.info(f"Clip {clip.index} rendered to {final_path}")
            return ClipOutcome(
                clip=clip, status="completed", output_path=final_path, result=result
            )
        except RenderFailure as e:
            logger.error(f"Clip {clip.index} failed at {e.stage.value}: {e.cause}")
            return ClipOutcome(
                clip=clip, status="failed", stage=e.stage.value,
                error=str(e.cause), cause=e.cause,
            )
        except RenderCancelled as e:
            logger.info(f"Clip {clip.index} cancelled before {e.stage.value}")
            return ClipOutcome(clip=clip, status="cancelled", stage=e.stage.value)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)


async def render_clips(
    source_path: str | Path,
    clips: List[ClipDefinition],
    options: ProcessingOptions,
    output_dir: Path,
    renderer: Optional[ClipRenderer] = None,
    video: Optional[VideoMetadata] = None,
    max_workers: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
    work_root: Optional[Path] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> List[ClipOutcome]:
    """
    Render clips concurrently on a bounded worker pool.

    Every clip gets a private work directory that is removed whatever the
    outcome. A failed clip never stops its siblings.

    Returns:
        One ClipOutcome per clip, in clip order
    """
    source_path = Path(source_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    work_root = Path(work_root or settings.temp_dir)
    work_root.mkdir(parents=True, exist_ok=True)

    renderer = renderer or ClipRenderer.from_settings()
    semaphore = asyncio.Semaphore(max(1, max_workers or settings.render_max_workers))

    outcomes = await asyncio.gather(*(
        _render_one(
            renderer, semaphore, source_path, clip, options,
            output_dir, work_root, video, cancel_event, progress_callback,
        )
        for clip in clips
    ))
    return list(outcomes)


async def run_pipeline(
    transcript_lines: Iterable[str],
    source_path: str | Path,
    options: ProcessingOptions,
    output_dir: Path,
    video: Optional[VideoMetadata] = None,
    scorer: Optional[Scorer] = None,
    renderer: Optional[ClipRenderer] = None,
    config: Optional[PipelineConfig] = None,
    cancel_event: Optional[asyncio.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
    render: bool = True,
    write_debug: Optional[bool] = None,
) -> PipelineResult:
    """
    Run the full transcript-to-shorts pipeline.

    Args:
        transcript_lines: Timestamped transcript lines
        source_path: Source video file (read only)
        options: Processing options
        output_dir: Where final clips (and debug output) go
        video: Source video metadata
        scorer: Scoring strategy (built from settings if not provided)
        renderer: Clip renderer (built from settings if not provided)
        config: Pipeline configuration
        cancel_event: Set to stop rendering between stages
        progress_callback: Optional async callback for progress updates
        render: Skip rendering when False
        write_debug: Override ``settings.write_debug_json``

    Returns:
        PipelineResult with analysis and per-clip outcomes
    """
    config = config or DEFAULT_PIPELINE_CONFIG
    scorer = scorer or build_scorer(settings, config=config)
    output_dir = Path(output_dir)
    if write_debug is None:
        write_debug = settings.write_debug_json

    # Progress helper
    async def report_progress(pct: float, msg: str):
        if progress_callback:
            await progress_callback(pct, msg)
        logger.info(f"[{pct:.0f}%] {msg}")

    await report_progress(0, f"Analyzing transcript with {scorer.name} scorer...")
    analysis = await analyze_transcript(transcript_lines, options, scorer, video, config)
    await report_progress(
        30, f"{len(analysis.segments)} segments, {len(analysis.clips)} clips planned"
    )

    outcomes: List[ClipOutcome] = []
    if render and analysis.clips:
        async def render_progress(pct, msg):
            # Map render progress to 30-95%
            await report_progress(30 + (pct / 100) * 65, msg)

        outcomes = await render_clips(
            source_path, analysis.clips, options, output_dir,
            renderer=renderer,
            video=video,
            cancel_event=cancel_event,
            progress_callback=render_progress,
        )

    if write_debug:
        write_debug_json(
            output_dir / "debug" / "pipeline_debug.json",
            config, options, analysis, outcomes,
        )

    done = sum(1 for o in outcomes if o.status == "completed")
    await report_progress(100, f"Pipeline complete: {done}/{len(analysis.clips)} clips rendered")

    return PipelineResult(analysis=analysis, outcomes=outcomes)
