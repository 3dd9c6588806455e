#!/usr/bin/env python3
"""
CLI tool to turn a timestamped transcript and its video into vertical shorts.

Usage:
    python scripts/generate_shorts_cli.py <transcript> <video_path> [--output-dir <dir>]

Example:
    python scripts/generate_shorts_cli.py talk.txt ~/Videos/talk.mp4 --output-dir ./shorts
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from autoshorts.config import settings
from autoshorts.models import ProcessingOptions, VideoMetadata
from autoshorts.pipeline.runner import run_pipeline
from autoshorts.pipeline.transcript import load_transcript
from autoshorts.utils.ffmpeg import check_ffmpeg_available, check_ffprobe_available


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


async def generate_shorts(
    transcript_path: Path,
    video_path: Path,
    output_dir: Path,
    options: ProcessingOptions,
    video: VideoMetadata = None,
    analyze_only: bool = False,
):
    """
    Run the pipeline and write a JSON summary next to the clips.

    Args:
        transcript_path: Path to transcript file
        video_path: Path to source video
        output_dir: Directory for clips and summary
        options: Processing options
        video: Source video metadata
        analyze_only: Stop after clip assembly
    """
    # Validate input
    if not transcript_path.exists():
        raise FileNotFoundError(f"Transcript not found: {transcript_path}")
    if not analyze_only and not video_path.exists():
        raise FileNotFoundError(f"Video not found: {video_path}")
    if not analyze_only and not (check_ffmpeg_available() and check_ffprobe_available()):
        raise FileNotFoundError(
            f"ffmpeg/ffprobe not found ({settings.ffmpeg_path}, {settings.ffprobe_path})"
        )

    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info(f"Transcript: {transcript_path}")
    lines = load_transcript(transcript_path)

    async def progress_callback(pct, msg):
        logger.debug(f"[{pct:.0f}%] {msg}")

    result = await run_pipeline(
        transcript_lines=lines,
        source_path=video_path,
        options=options,
        output_dir=output_dir,
        video=video,
        progress_callback=progress_callback,
        render=not analyze_only,
    )

    output_file = output_dir / "shorts.json"
    with open(output_file, 'w') as f:
        json.dump({
            "transcript_path": str(transcript_path),
            "video_path": str(video_path),
            "options": options.model_dump(),
            **result.to_dict(),
        }, f, indent=2)

    logger.info(f"Summary written to: {output_file}")

    if not result.analysis.clips:
        logger.info("No segment matched the duration window; no clips produced")
        return 0

    for clip in result.analysis.clips:
        logger.info(
            f"  {clip.index}. {clip.start:.1f}s - {clip.end:.1f}s "
            f"({len(clip.segments)} segments) {clip.title}"
        )

    for outcome in result.failed:
        logger.error(f"Clip {outcome.clip.index} failed at {outcome.stage}: {outcome.error}")

    return 1 if result.failed else 0


def main():
    parser = argparse.ArgumentParser(
        description="Generate vertical shorts from a transcript and video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Render up to three clips with captions and enhancements
    python scripts/generate_shorts_cli.py talk.txt talk.mp4

    # Only show which clips would be cut
    python scripts/generate_shorts_cli.py talk.txt talk.mp4 --analyze-only

    # Five short clips, letterboxed, no captions
    python scripts/generate_shorts_cli.py talk.txt talk.mp4 --count 5 --max 30 --no-zoom --no-captions
        """
    )

    parser.add_argument("transcript", type=Path, help="Timestamped transcript file")
    parser.add_argument("video_path", type=Path, help="Source video file")

    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Output directory (default: settings.clips_dir)"
    )
    parser.add_argument("--analyze-only", action="store_true", help="Skip rendering")
    parser.add_argument("--title", default=None, help="Video title used in clip titles")
    parser.add_argument("--video-id", default=None, help="Video id used in file names")

    parser.add_argument("--count", type=int, default=3, help="Maximum number of clips")
    parser.add_argument("--min", dest="min_duration", type=float, default=15, help="Minimum segment seconds")
    parser.add_argument("--max", dest="max_duration", type=float, default=60, help="Maximum segment seconds")
    parser.add_argument("--no-captions", action="store_true", help="Do not burn captions")
    parser.add_argument("--no-enhance", action="store_true", help="Skip color and audio enhancement")
    parser.add_argument("--no-zoom", action="store_true", help="Letterbox instead of center crop")
    parser.add_argument("--music", action="store_true", help="Mix in the configured background music")
    parser.add_argument("--music-volume", type=int, default=30, help="Music volume percent")

    args = parser.parse_args()

    try:
        options = ProcessingOptions(
            max_clip_duration=args.max_duration,
            min_clip_duration=args.min_duration,
            max_clip_count=args.count,
            auto_zoom_vertical=not args.no_zoom,
            apply_enhancements=not args.no_enhance,
            add_background_music=args.music,
            music_volume_percent=args.music_volume,
            auto_captions=not args.no_captions,
        )
    except ValueError as e:
        parser.error(str(e))

    video = VideoMetadata(title=args.title, video_id=args.video_id)

    # Default output directory
    if args.output_dir is None:
        args.output_dir = settings.clips_dir

    # Run
    try:
        code = asyncio.run(generate_shorts(
            transcript_path=args.transcript,
            video_path=args.video_path,
            output_dir=args.output_dir,
            options=options,
            video=video,
            analyze_only=args.analyze_only,
        ))
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Error: {e}")
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
