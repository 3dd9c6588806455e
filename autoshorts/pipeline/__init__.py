"""
Transcript-to-shorts pipeline.

Pipeline stages:
1. Transcript parsing: timestamped lines -> contiguous segments
2. Engagement scoring: heuristic or external model with heuristic fallback
3. Selection: best segments within the duration window, up to the clip count
4. Assembly: nearby selected segments merge into clip definitions
5. Rendering: extract -> caption -> enhance -> reformat to vertical
"""

from .runner import run_pipeline, analyze_transcript, render_clips

__all__ = ["run_pipeline", "analyze_transcript", "render_clips"]
