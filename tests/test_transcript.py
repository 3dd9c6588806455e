"""Tests for transcript parsing."""
import pytest

from autoshorts.pipeline.config import PipelineConfig
from autoshorts.pipeline.transcript import (
    TranscriptParseError,
    load_transcript,
    parse_transcript,
    parse_transcript_with_report,
)


class TestParseTranscript:
    def test_segments_are_contiguous(self):
        segments = parse_transcript([
            "00:00:00 Hello there",
            "00:00:05 Second line",
            "00:00:12 Third line",
        ])

        assert [(s.start, s.end) for s in segments] == [(0, 5), (5, 12), (12, 22)]
        assert [s.text for s in segments] == ["Hello there", "Second line", "Third line"]
        for current, following in zip(segments, segments[1:]):
            assert current.end == following.start

    def test_last_segment_gets_default_length(self):
        config = PipelineConfig(default_segment_seconds=4)
        segments = parse_transcript(["00:01:00 only line"], config=config)
        assert segments[0].start == 60
        assert segments[0].end == 64

    def test_minutes_seconds_tokens(self):
        segments = parse_transcript(["01:30 ninety", "02:00 one twenty"])
        assert segments[0].start == 90
        assert segments[0].end == 120

    def test_text_is_trimmed(self):
        segments = parse_transcript(["00:00:01    spaced out text   "])
        assert segments[0].text == "spaced out text"

    def test_empty_input(self):
        assert parse_transcript([]) == []

    def test_input_order_is_preserved(self):
        segments = parse_transcript(["00:00:10 later", "00:00:05 earlier"])

        assert [s.text for s in segments] == ["later", "earlier"]
        # A backwards step falls back to the default length
        assert segments[0].end == 20
        assert segments[1].end == 15

    def test_unscored_and_unselected(self):
        segments = parse_transcript(["00:00:00 a", "00:00:10 b"])
        assert all(s.score == 0.0 and not s.selected for s in segments)


class TestSkippedLines:
    LINES = [
        "00:00:00 first",
        "",
        "garbage",
        "xx:yy broken stamp",
        "00:00:10 after",
    ]

    def test_malformed_lines_are_skipped(self):
        result = parse_transcript_with_report(self.LINES)

        assert [s.text for s in result.segments] == ["first", "after"]
        assert [s.line_number for s in result.skipped] == [2, 3, 4]
        assert result.skipped[1].reason == "no separator"
        assert "unparseable timestamp" in result.skipped[2].reason

    def test_malformed_next_timestamp_uses_default_length(self):
        result = parse_transcript_with_report(self.LINES)
        first = result.segments[0]
        assert (first.start, first.end) == (0, 10)

    def test_strict_mode_raises(self):
        with pytest.raises(TranscriptParseError) as exc_info:
            parse_transcript_with_report(self.LINES, strict=True)

        assert [s.line_number for s in exc_info.value.skipped] == [3, 4]

    def test_strict_mode_ignores_blank_lines(self):
        result = parse_transcript_with_report(
            ["00:00:00 a", "", "   ", "00:00:05 b"], strict=True
        )
        assert len(result.segments) == 2
        assert result.skipped_count == 2


def test_load_transcript(tmp_path):
    path = tmp_path / "talk.txt"
    path.write_text("00:00:00 hi\n00:00:04 there\n", encoding="utf-8")

    lines = load_transcript(path)

    assert lines == ["00:00:00 hi", "00:00:04 there"]
    assert len(parse_transcript(lines)) == 2
