"""Tests for clip assembly."""
import pytest

from autoshorts.models import ClipDefinition, Segment, VideoMetadata
from autoshorts.pipeline.assembler import assemble_clips
from autoshorts.pipeline.config import PipelineConfig


def _seg(start, end):
    return Segment(start=start, end=end, text=f"{start}-{end}", selected=True)


class TestAssembleClips:
    def test_close_segments_merge(self):
        clips = assemble_clips([_seg(0, 5), _seg(6, 10), _seg(20, 25)])

        assert len(clips) == 2
        assert [(c.start, c.end) for c in clips] == [(0, 10), (20, 25)]
        assert len(clips[0].segments) == 2
        assert clips[0].duration == 10

    def test_input_order_does_not_matter(self):
        clips = assemble_clips([_seg(20, 25), _seg(6, 10), _seg(0, 5)])
        assert [(c.start, c.end) for c in clips] == [(0, 10), (20, 25)]

    def test_gap_equal_to_threshold_splits(self):
        clips = assemble_clips([_seg(0, 5), _seg(10, 15)])
        assert len(clips) == 2

    def test_custom_gap(self):
        clips = assemble_clips([_seg(0, 5), _seg(10, 15)], config=PipelineConfig(merge_gap_seconds=6))
        assert len(clips) == 1

    def test_titles_and_indices(self):
        clips = assemble_clips([_seg(0, 5), _seg(100, 110)], VideoMetadata(title="Keynote"))

        assert [c.index for c in clips] == [1, 2]
        assert [c.title for c in clips] == ["Keynote - Clip 1", "Keynote - Clip 2"]

    def test_untitled_video(self):
        clips = assemble_clips([_seg(0, 5)])
        assert clips[0].title == "Clip 1"

    def test_every_segment_in_exactly_one_clip(self):
        segments = [_seg(i * 7, i * 7 + 4) for i in range(10)]
        clips = assemble_clips(segments)

        members = [s for c in clips for s in c.segments]
        assert sorted(members, key=lambda s: s.start) == segments

    def test_empty_selection(self):
        assert assemble_clips([]) == []


def test_clip_definition_requires_segments():
    with pytest.raises(ValueError):
        ClipDefinition(index=1, title="Clip 1", segments=())
