"""Debug artifact generation.

Writes a JSON file explaining every pipeline decision for one video.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from autoshorts.models import ProcessingOptions
from .config import PipelineConfig

if TYPE_CHECKING:
    from .runner import AnalysisResult, ClipOutcome

logger = logging.getLogger(__name__)


def write_debug_json(
    output_path: Path,
    config: PipelineConfig,
    options: ProcessingOptions,
    analysis: "AnalysisResult",
    outcomes: Optional[List["ClipOutcome"]] = None,
):
    """
    Write comprehensive debug JSON file.
    """
    outcomes = outcomes or []
    debug_data = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "scorer": analysis.scorer_name,

        # Configuration
        "config": config.to_dict(),
        "options": options.model_dump(),

        # Parsing
        "skipped_lines": [s.to_dict() for s in analysis.skipped],

        # Scoring
        "segments": [s.to_dict() for s in analysis.scored],

        # Selection and assembly
        "selected_segments": [s.to_dict() for s in analysis.selected],
        "clips": [c.to_dict() for c in analysis.clips],

        # Rendering
        "render_outcomes": [o.to_dict() for o in outcomes],

        # Statistics
        "statistics": {
            "total_segments": len(analysis.segments),
            "skipped_lines": len(analysis.skipped),
            "selected_segments": len(analysis.selected),
            "clip_count": len(analysis.clips),
            "rendered": sum(1 for o in outcomes if o.status == "completed"),
            "failed": sum(1 for o in outcomes if o.status == "failed"),
            "cancelled": sum(1 for o in outcomes if o.status == "cancelled"),
        },
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(debug_data, f, indent=2)

    logger.info(f"Debug JSON written to {output_path}")
    return output_path
