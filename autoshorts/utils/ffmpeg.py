"""FFmpeg and ffprobe utilities."""
import asyncio
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from autoshorts.config import settings

logger = logging.getLogger(__name__)

ENHANCE_VIDEO_FILTER = "eq=brightness=0.05:saturation=1.3,unsharp=5:5:1.0:5:5:0.0"
LOUDNORM_FILTER = "loudnorm=I=-16:TP=-1.5:LRA=11"


@dataclass
class VideoInfo:
    """Video metadata container."""
    duration: float
    width: int
    height: int
    fps: float
    video_codec: str
    audio_codec: Optional[str]
    format_name: str
    bit_rate: Optional[int]

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height (0 when height is unknown)."""
        if self.height <= 0:
            return 0.0
        return self.width / self.height

    @property
    def has_audio(self) -> bool:
        return self.audio_codec is not None


class FFmpegError(Exception):
    """FFmpeg related error."""
    pass


def check_ffmpeg_available() -> bool:
    """Check if ffmpeg is available."""
    return shutil.which(settings.ffmpeg_path) is not None


def check_ffprobe_available() -> bool:
    """Check if ffprobe is available."""
    return shutil.which(settings.ffprobe_path) is not None


async def get_video_info(video_path: str | Path) -> VideoInfo:
    """
    Get video metadata using ffprobe.

    Args:
        video_path: Path to video file

    Returns:
        VideoInfo with video metadata

    Raises:
        FFmpegError: If the file is missing or ffprobe fails
    """
    video_path = Path(video_path)
    if not video_path.exists():
        raise FFmpegError(f"Video file not found: {video_path}")

    cmd = [
        settings.ffprobe_path,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(video_path)
    ]

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, stderr = await proc.communicate()

        if proc.returncode != 0:
            raise FFmpegError(f"ffprobe failed: {stderr.decode(errors='ignore')}")

        data = json.loads(stdout.decode())

        # Find first video and audio streams
        video_stream = None
        audio_stream = None
        for stream in data.get("streams", []):
            if stream.get("codec_type") == "video" and video_stream is None:
                video_stream = stream
            elif stream.get("codec_type") == "audio" and audio_stream is None:
                audio_stream = stream

        if not video_stream:
            raise FFmpegError("No video stream found")

        # Parse frame rate
        fps_str = video_stream.get("r_frame_rate", "30/1")
        if "/" in fps_str:
            num, den = fps_str.split("/")
            fps = float(num) / float(den) if float(den) > 0 else 30.0
        else:
            fps = float(fps_str)

        # Get duration
        duration = float(data.get("format", {}).get("duration", 0))
        if duration == 0:
            duration = float(video_stream.get("duration", 0))

        return VideoInfo(
            duration=duration,
            width=int(video_stream.get("width", 0)),
            height=int(video_stream.get("height", 0)),
            fps=fps,
            video_codec=video_stream.get("codec_name", "unknown"),
            audio_codec=audio_stream.get("codec_name") if audio_stream else None,
            format_name=data.get("format", {}).get("format_name", "unknown"),
            bit_rate=int(data.get("format", {}).get("bit_rate", 0)) or None
        )
    except json.JSONDecodeError as e:
        raise FFmpegError(f"Failed to parse ffprobe output: {e}") from e
    except Exception as e:
        if isinstance(e, FFmpegError):
            raise
        raise FFmpegError(f"ffprobe error: {e}") from e


async def _run_ffmpeg(
    cmd: List[str],
    description: str,
    timeout: Optional[float] = None,
) -> None:
    """
    Run an ffmpeg command to completion.

    The child process is killed if the timeout expires or the awaiting task
    is cancelled, so no encoder outlives its caller.

    Raises:
        FFmpegError: On non-zero exit or timeout
    """
    logger.debug("Running ffmpeg (%s): %s", description, " ".join(cmd))

    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE
    )

    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise FFmpegError(f"{description} timed out after {timeout}s") from e
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise

    if proc.returncode != 0:
        tail = stderr.decode("utf-8", errors="ignore")[-2000:]
        raise FFmpegError(f"{description} failed (rc={proc.returncode}): {tail}")


def _encode_args() -> List[str]:
    return [
        "-c:v", settings.export_video_codec,
        "-preset", settings.export_video_preset,
        "-crf", str(settings.export_video_crf),
    ]


def _escape_filter_path(path: Path) -> str:
    """Escape a file path for use inside an ffmpeg filter argument."""
    value = str(path).replace("\\", "/")
    return value.replace(":", "\\:").replace("'", "\\'")


async def export_clip(
    source_path: str | Path,
    output_path: str | Path,
    start_time: float,
    end_time: float,
    timeout: Optional[float] = None,
) -> Path:
    """
    Export a trimmed clip from the source video.

    Args:
        source_path: Path to source video (read only)
        output_path: Path for output file
        start_time: Start time in seconds
        end_time: End time in seconds
        timeout: Optional limit for the encode, seconds

    Returns:
        Path to exported clip
    """
    source_path = Path(source_path)
    output_path = Path(output_path)

    duration = end_time - start_time
    if duration <= 0:
        raise FFmpegError(f"Invalid clip span: {start_time}-{end_time}")

    # Ensure output directory exists
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        settings.ffmpeg_path,
        "-y",
        "-ss", str(start_time),
        "-i", str(source_path),
        "-t", str(duration),
        *_encode_args(),
        "-c:a", settings.export_audio_codec,
        "-b:a", settings.export_audio_bitrate,
        "-movflags", "+faststart",
        str(output_path)
    ]

    await _run_ffmpeg(cmd, "Export", timeout=timeout)
    return output_path


async def burn_subtitles(
    input_path: str | Path,
    subtitle_path: str | Path,
    output_path: str | Path,
    timeout: Optional[float] = None,
) -> Path:
    """Hard-burn an SRT subtitle track into the video."""
    input_path = Path(input_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        settings.ffmpeg_path,
        "-y",
        "-i", str(input_path),
        "-vf", f"subtitles='{_escape_filter_path(Path(subtitle_path))}'",
        *_encode_args(),
        "-c:a", "copy",
        str(output_path)
    ]

    await _run_ffmpeg(cmd, "Subtitle burn-in", timeout=timeout)
    return output_path


def build_enhance_command(
    input_path: Path,
    output_path: Path,
    apply_visual: bool,
    has_audio: bool = True,
    music_path: Optional[Path] = None,
    music_volume: float = 0.3,
) -> List[str]:
    """
    Build the ffmpeg command for the enhancement pass.

    Visual correction is optional; loudness normalization always applies to
    the clip's own audio. With a music bed, both tracks are mixed and the
    result lasts as long as the longer input.
    """
    cmd = [settings.ffmpeg_path, "-y", "-i", str(input_path)]

    if music_path is not None:
        cmd += ["-i", str(music_path)]

        filter_parts = []
        if apply_visual:
            filter_parts.append(f"[0:v]{ENHANCE_VIDEO_FILTER}[vout]")
        if has_audio:
            filter_parts.append(f"[0:a]{LOUDNORM_FILTER},volume=1[a1]")
            filter_parts.append(f"[1:a]volume={music_volume:.2f}[a2]")
            filter_parts.append("[a1][a2]amix=inputs=2:duration=longest[aout]")
        else:
            filter_parts.append(f"[1:a]volume={music_volume:.2f}[aout]")

        cmd += ["-filter_complex", ";".join(filter_parts)]
        cmd += ["-map", "[vout]" if apply_visual else "0:v"]
        cmd += ["-map", "[aout]"]
    else:
        if apply_visual:
            cmd += ["-vf", ENHANCE_VIDEO_FILTER]
        if has_audio:
            cmd += ["-af", LOUDNORM_FILTER]

    if apply_visual:
        cmd += _encode_args()
    else:
        cmd += ["-c:v", "copy"]

    cmd += [
        "-c:a", settings.export_audio_codec,
        "-b:a", settings.export_audio_bitrate,
        str(output_path)
    ]
    return cmd


async def enhance_clip(
    input_path: str | Path,
    output_path: str | Path,
    apply_visual: bool,
    has_audio: bool = True,
    music_path: Optional[Path] = None,
    music_volume: float = 0.3,
    timeout: Optional[float] = None,
) -> Path:
    """Apply visual correction, audio normalization and an optional music bed."""
    input_path = Path(input_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = build_enhance_command(
        input_path, output_path, apply_visual,
        has_audio=has_audio, music_path=music_path, music_volume=music_volume,
    )
    await _run_ffmpeg(cmd, "Enhancement", timeout=timeout)
    return output_path


def build_vertical_filter(
    source_width: int,
    source_height: int,
    auto_zoom: bool,
    target_width: int = None,
    target_height: int = None,
    ratio_threshold: float = None,
) -> str:
    """
    Build the filter chain that lands a clip on the vertical canvas.

    Wide sources (width/height above the threshold) are either center
    cropped to 9:16 before scaling (auto zoom) or letterboxed. Sources that
    are already close to vertical are always letterboxed.
    """
    target_width = target_width or settings.vertical_width
    target_height = target_height or settings.vertical_height
    if ratio_threshold is None:
        ratio_threshold = settings.vertical_ratio_threshold

    if source_height <= 0:
        raise FFmpegError(f"Invalid source dimensions: {source_width}x{source_height}")

    fit = (
        f"scale={target_width}:{target_height}:force_original_aspect_ratio=decrease,"
        f"pad={target_width}:{target_height}:(ow-iw)/2:(oh-ih)/2:black,setsar=1"
    )

    ratio = source_width / source_height
    if ratio > ratio_threshold and auto_zoom:
        # Even crop width keeps libx264 happy
        return f"crop=trunc(ih*9/16/2)*2:ih,{fit}"
    return fit


async def convert_to_vertical(
    input_path: str | Path,
    output_path: str | Path,
    source_width: int,
    source_height: int,
    auto_zoom: bool,
    timeout: Optional[float] = None,
    target_width: int = None,
    target_height: int = None,
) -> Path:
    """Re-encode a clip onto the vertical canvas (settings canvas by default)."""
    input_path = Path(input_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    vf = build_vertical_filter(
        source_width, source_height, auto_zoom,
        target_width=target_width, target_height=target_height,
    )

    cmd = [
        settings.ffmpeg_path,
        "-y",
        "-i", str(input_path),
        "-vf", vf,
        *_encode_args(),
        "-c:a", "copy",
        "-movflags", "+faststart",
        str(output_path)
    ]

    await _run_ffmpeg(cmd, "Vertical reformat", timeout=timeout)
    return output_path
