"""User-facing processing options."""
from pydantic import BaseModel, ConfigDict, Field


class ProcessingOptions(BaseModel):
    """Options chosen for one video. Read-only once constructed."""

    model_config = ConfigDict(frozen=True)

    max_clip_duration: float = Field(60, ge=15, le=60, description="Longest acceptable segment, seconds")
    min_clip_duration: float = Field(15, ge=5, le=30, description="Shortest acceptable segment, seconds")
    max_clip_count: int = Field(3, ge=1, le=10, description="Upper bound on selected segments")
    auto_zoom_vertical: bool = Field(True, description="Center-crop instead of letterboxing wide video")
    apply_enhancements: bool = Field(True, description="Color correction and sharpening")
    add_background_music: bool = Field(False, description="Mix a music bed under the clip audio")
    music_volume_percent: int = Field(30, ge=0, le=100, description="Music gain relative to original audio")
    auto_captions: bool = Field(True, description="Burn transcript captions into the clip")
