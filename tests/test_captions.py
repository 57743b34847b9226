"""Tests for ASS caption encoding."""

from __future__ import annotations

import pytest

from reelforge.captions import (
    ass_color_to_hex,
    build_caption_track,
    encode_captions,
    format_ass_timestamp,
    hex_to_ass_color,
    sanitize_event_text,
)
from reelforge.errors import ValidationError
from reelforge.models.schema import (
    CaptionAlignment,
    StoryboardSegment,
    SubtitleStyle,
    VideoFormat,
)
from reelforge.timing.aligner import align_to_audio


@pytest.fixture
def segments() -> list[StoryboardSegment]:
    return [
        StoryboardSegment(id=1, duration=7.5, script_text="The ocean hides more than we know."),
        StoryboardSegment(id=2, duration=12.25, script_text="Below two hundred meters\nsunlight fades."),
        StoryboardSegment(id=3, duration=10.25, script_text="Anglerfish {\\b1} glow."),
    ]


class TestColors:
    """Tests for web hex <-> ASS color conversion."""

    def test_hex_to_ass_reverses_channel_order(self) -> None:
        assert hex_to_ass_color("#A1B2C3") == "&H00C3B2A1"

    def test_round_trip(self) -> None:
        assert ass_color_to_hex(hex_to_ass_color("#A1B2C3")) == "#A1B2C3"

    def test_lowercase_input_normalized(self) -> None:
        assert hex_to_ass_color("#ff8800") == "&H000088FF"

    @pytest.mark.parametrize("value", ["FFFFFF", "#FFF", "#GGGGGG", ""])
    def test_invalid_hex_raises(self, value: str) -> None:
        with pytest.raises(ValidationError):
            hex_to_ass_color(value)

    def test_invalid_ass_raises(self) -> None:
        with pytest.raises(ValidationError):
            ass_color_to_hex("&HC3B2A1")


class TestTimestamps:
    """Tests for ASS timestamp formatting."""

    def test_zero(self) -> None:
        assert format_ass_timestamp(0) == "0:00:00.00"

    def test_truncates_to_centiseconds(self) -> None:
        assert format_ass_timestamp(7.5) == "0:00:07.50"
        assert format_ass_timestamp(19.759) == "0:00:19.75"

    def test_hours(self) -> None:
        assert format_ass_timestamp(3723.4) == "1:02:03.40"


class TestSanitize:
    """Tests for event text sanitizing."""

    def test_newlines_flattened(self) -> None:
        assert sanitize_event_text("a\nb\r\nc") == "a b c"

    def test_braces_replaced(self) -> None:
        assert sanitize_event_text("{\\pos(1,2)}x") == "(\\pos(1,2))x"


class TestBuildCaptionTrack:
    """Tests for the caption document layout."""

    def test_one_event_per_segment(self, segments) -> None:
        track = build_caption_track(segments, SubtitleStyle(), VideoFormat.SHORTS)
        assert len(track.events) == len(segments)

    def test_events_contiguous_from_zero(self, segments) -> None:
        track = build_caption_track(segments, SubtitleStyle(), VideoFormat.SHORTS)

        assert track.events[0].start == 0.0
        for previous, current in zip(track.events, track.events[1:]):
            assert current.start == previous.end
            assert current.start < current.end
        assert track.events[-1].end == pytest.approx(30.0)

    def test_event_text_is_sanitized(self, segments) -> None:
        track = build_caption_track(segments, SubtitleStyle(), VideoFormat.SHORTS)

        assert track.events[1].text == "Below two hundred meters sunlight fades."
        assert "{" not in track.events[2].text

    def test_vertical_format(self, segments) -> None:
        style = SubtitleStyle(font_size=150, alignment=CaptionAlignment.TOP)
        track = build_caption_track(segments, style, VideoFormat.SHORTS)

        assert (track.width, track.height) == (1080, 1920)
        assert track.font_size == 120
        assert track.alignment == 8
        assert track.margin_v == 500

    def test_horizontal_format(self, segments) -> None:
        style = SubtitleStyle(alignment=CaptionAlignment.CENTER)
        track = build_caption_track(segments, style, VideoFormat.LONG_FORM)

        assert (track.width, track.height) == (1920, 1080)
        assert track.font_size == 48
        assert track.alignment == 5
        assert track.margin_v == 80

    def test_empty_segments_raise(self) -> None:
        with pytest.raises(ValidationError, match="empty"):
            build_caption_track([], SubtitleStyle(), VideoFormat.SHORTS)

    @pytest.mark.parametrize("duration", [0.0, -1.0])
    def test_non_positive_duration_raises(self, duration: float) -> None:
        segments = [
            StoryboardSegment(id=1, duration=duration, script_text="a"),
            StoryboardSegment(id=2, duration=4.0, script_text="b"),
        ]
        with pytest.raises(ValidationError, match="Segment 1 has invalid duration"):
            build_caption_track(segments, SubtitleStyle(), VideoFormat.SHORTS)

    def test_aligned_short_segment_has_visible_event(self) -> None:
        aligned = align_to_audio(
            [
                StoryboardSegment(id=1, duration=5.0, script_text="a"),
                StoryboardSegment(id=2, duration=5.0, script_text="b" * 2000),
            ],
            4.0,
        )
        track = build_caption_track(aligned, SubtitleStyle(), VideoFormat.SHORTS)

        rendered = [(format_ass_timestamp(e.start), format_ass_timestamp(e.end)) for e in track.events]
        assert rendered == [("0:00:00.00", "0:00:00.01"), ("0:00:00.01", "0:00:04.00")]


class TestEncodeCaptions:
    """Tests for the rendered ASS document."""

    def test_document_structure(self, segments) -> None:
        style = SubtitleStyle(primary_color="#A1B2C3", outline_color="#000000")
        document = encode_captions(segments, style, VideoFormat.SHORTS)
        lines = document.splitlines()

        assert lines[0] == "[Script Info]"
        assert "PlayResX: 1080" in lines
        assert "PlayResY: 1920" in lines
        styles = [line for line in lines if line.startswith("Style: ")]
        assert len(styles) == 1
        assert styles[0].startswith("Style: Default,Montserrat ExtraBold,80,&H00C3B2A1,")

        dialogue = [line for line in lines if line.startswith("Dialogue: ")]
        assert dialogue == [
            "Dialogue: 0,0:00:00.00,0:00:07.50,Default,,0,0,0,,The ocean hides more than we know.",
            "Dialogue: 0,0:00:07.50,0:00:19.75,Default,,0,0,0,,Below two hundred meters sunlight fades.",
            "Dialogue: 0,0:00:19.75,0:00:30.00,Default,,0,0,0,,Anglerfish (\\b1) glow.",
        ]

    def test_events_follow_header(self, segments) -> None:
        document = encode_captions(segments, SubtitleStyle(), VideoFormat.LONG_FORM)
        events_at = document.index("[Events]")

        assert document.index("Dialogue:") > events_at
        assert document.endswith("\n")
