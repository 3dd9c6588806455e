"""Pipeline Configuration."""
from dataclasses import dataclass, field
from typing import Tuple

ENGAGEMENT_KEYWORDS: Tuple[str, ...] = (
    "amazing", "wow", "incredible", "unbelievable", "shocking",
    "important", "fascinating", "secret", "reveal", "exclusive",
    "first time", "never before", "breaking", "discover", "learn",
    "best", "worst", "most", "least", "top", "favorite",
)


@dataclass
class PipelineConfig:
    """Constants that shape transcript analysis and clip assembly."""

    # Transcript parsing
    default_segment_seconds: float = 10.0  # Length given to the last line

    # Heuristic scoring
    keywords: Tuple[str, ...] = field(default_factory=lambda: ENGAGEMENT_KEYWORDS)
    keyword_weight: float = 0.5
    length_divisor: float = 100.0  # len(text)/divisor, capped at length_cap
    length_cap: float = 1.0
    question_bonus: float = 0.5
    exclamation_bonus: float = 0.3
    jitter: float = 0.3  # Random tie-breaker drawn from [0, jitter)

    # Model-assisted scoring
    max_tokens_per_chunk: int = 4000
    chars_per_token: int = 4
    model_score_max: float = 10.0

    # Selection
    min_segment_seconds: float = 3.0  # Absolute floor, below user minimum

    # Assembly
    merge_gap_seconds: float = 5.0  # Gaps shorter than this join one clip

    def to_dict(self) -> dict:
        """Convert config to dictionary for serialization."""
        return {
            "default_segment_seconds": self.default_segment_seconds,
            "keywords": list(self.keywords),
            "keyword_weight": self.keyword_weight,
            "length_divisor": self.length_divisor,
            "length_cap": self.length_cap,
            "question_bonus": self.question_bonus,
            "exclamation_bonus": self.exclamation_bonus,
            "jitter": self.jitter,
            "max_tokens_per_chunk": self.max_tokens_per_chunk,
            "chars_per_token": self.chars_per_token,
            "model_score_max": self.model_score_max,
            "min_segment_seconds": self.min_segment_seconds,
            "merge_gap_seconds": self.merge_gap_seconds,
        }


# Default configuration instance
DEFAULT_PIPELINE_CONFIG = PipelineConfig()
