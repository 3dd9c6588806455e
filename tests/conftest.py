"""Shared fixtures: an in-process stand-in for the ffmpeg helpers."""
from pathlib import Path

import pytest

from autoshorts.utils import ffmpeg
from autoshorts.utils.ffmpeg import VideoInfo


class FakeFFmpeg:
    """Records calls and writes small placeholder files instead of encoding."""

    def __init__(self):
        self.calls = []
        self.info = VideoInfo(
            duration=600.0, width=1920, height=1080, fps=30.0,
            video_codec="h264", audio_codec="aac", format_name="mp4", bit_rate=None,
        )
        self.fail_on = None
        self.on_call = None

    def _record(self, name, output_path):
        self.calls.append(name)
        if self.on_call is not None:
            self.on_call(name)
        if self.fail_on == name:
            raise ffmpeg.FFmpegError(f"{name} failed")
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(name.encode())
        return output_path

    async def get_video_info(self, video_path):
        return self.info

    async def export_clip(self, source_path, output_path, start_time, end_time, timeout=None):
        self.export_span = (start_time, end_time)
        return self._record("export", output_path)

    async def burn_subtitles(self, input_path, subtitle_path, output_path, timeout=None):
        self.subtitle_path = Path(subtitle_path)
        return self._record("subtitles", output_path)

    async def enhance_clip(self, input_path, output_path, apply_visual, has_audio=True,
                           music_path=None, music_volume=0.3, timeout=None):
        self.enhance_args = {
            "apply_visual": apply_visual,
            "music_path": music_path,
            "music_volume": music_volume,
        }
        return self._record("enhance", output_path)

    async def convert_to_vertical(self, input_path, output_path, source_width, source_height,
                                  auto_zoom, timeout=None, target_width=None, target_height=None):
        self.vertical_args = (source_width, source_height, auto_zoom)
        self.vertical_canvas = (target_width, target_height)
        return self._record("vertical", output_path)


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    fake = FakeFFmpeg()
    for name in ("get_video_info", "export_clip", "burn_subtitles", "enhance_clip", "convert_to_vertical"):
        monkeypatch.setattr(ffmpeg, name, getattr(fake, name))
    return fake


@pytest.fixture
def source_video(tmp_path):
    path = tmp_path / "source.mp4"
    path.write_bytes(b"source-video")
    return path
