"""Application configuration."""
from pathlib import Path
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )

    # App settings
    app_name: str = "AutoShorts"
    debug: bool = False

    # Data directories
    data_dir: Path = Path("./data")
    temp_dir: Path = Path("./data/temp")
    clips_dir: Path = Path("./data/clips")

    # FFmpeg settings
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Export settings
    export_video_codec: str = "libx264"
    export_video_preset: str = "veryfast"
    export_video_crf: int = 22
    export_audio_codec: str = "aac"
    export_audio_bitrate: str = "192k"

    # Vertical canvas
    vertical_width: int = 1080
    vertical_height: int = 1920
    vertical_ratio_threshold: float = 0.65  # width/height above this gets reframed

    # Scoring
    scoring_strategy: Literal["heuristic", "gemini", "http"] = "heuristic"
    scoring_seed: Optional[int] = None
    scorer_max_concurrency: int = 2
    scorer_timeout_seconds: float = 60.0
    scorer_poll_interval_seconds: float = 5.0
    scorer_poll_max_attempts: int = 60  # 5 minutes at the default interval

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    scoring_service_url: Optional[str] = None
    scoring_service_api_key: Optional[str] = None

    # Rendering
    render_max_workers: int = 2
    render_stage_timeout_seconds: Optional[float] = None
    background_music_path: Optional[Path] = None

    # Debug
    write_debug_json: bool = True


settings = Settings()

# Ensure directories exist
settings.data_dir.mkdir(parents=True, exist_ok=True)
settings.temp_dir.mkdir(parents=True, exist_ok=True)
settings.clips_dir.mkdir(parents=True, exist_ok=True)
