"""Caption track encoding: timed storyboard segments to an ASS document.

The output is an Advanced SubStation Alpha (v4.00+) file with one header,
one named style, and one ``Dialogue`` event per segment. Events are laid
end to end from zero, so each event starts exactly where the previous one
ends.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from reelforge.errors import ValidationError
from reelforge.models.schema import (
    CaptionAlignment,
    StoryboardSegment,
    SubtitleStyle,
    VideoFormat,
)
from reelforge.timing.aligner import segment_bounds

STYLE_NAME = "Default"

# ASS font size is a relative height, not pixels.
BASE_FONT_SIZE = {VideoFormat.SHORTS: 80, VideoFormat.LONG_FORM: 48}
MARGIN_V = {VideoFormat.SHORTS: 500, VideoFormat.LONG_FORM: 80}

# Numpad layout: 2 = bottom center, 5 = middle center, 8 = top center.
ALIGNMENT_CODES = {
    CaptionAlignment.BOTTOM: 2,
    CaptionAlignment.CENTER: 5,
    CaptionAlignment.TOP: 8,
}

SECONDARY_COLOUR = "&H000000FF"
BACK_COLOUR = "&H80000000"

_HEX_RE = re.compile(r"^#([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})$")
_ASS_RE = re.compile(r"^&H([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})$")

STYLE_FORMAT = (
    "Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, "
    "Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, "
    "Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding"
)
EVENT_FORMAT = "Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"


def hex_to_ass_color(hex_color: str) -> str:
    """Convert ``#RRGGBB`` to ASS ``&H00BBGGRR`` (opaque, blue-green-red order).

    Raises:
        ValidationError: If the color is not a 6-digit web hex value.
    """
    match = _HEX_RE.match(hex_color or "")
    if match is None:
        raise ValidationError(f"Invalid hex color: {hex_color!r}")
    r, g, b = (part.upper() for part in match.groups())
    return f"&H00{b}{g}{r}"


def ass_color_to_hex(ass_color: str) -> str:
    """Convert ASS ``&HAABBGGRR`` back to ``#RRGGBB``. The alpha byte is dropped."""
    match = _ASS_RE.match(ass_color or "")
    if match is None:
        raise ValidationError(f"Invalid ASS color: {ass_color!r}")
    _, b, g, r = (part.upper() for part in match.groups())
    return f"#{r}{g}{b}"


def format_ass_timestamp(seconds: float) -> str:
    """Format seconds as ASS ``H:MM:SS.cc``, truncated to centiseconds."""
    centis_total = math.floor(seconds * 100 + 1e-6)
    hours, rem = divmod(centis_total, 360000)
    minutes, rem = divmod(rem, 6000)
    secs, centis = divmod(rem, 100)
    return f"{hours}:{minutes:02d}:{secs:02d}.{centis:02d}"


def sanitize_event_text(text: str) -> str:
    """Make narration safe as ASS event text.

    Line breaks become spaces and braces, which open override blocks, are
    swapped for parentheses.
    """
    flattened = re.sub(r"\r\n|\r|\n", " ", text)
    return flattened.replace("{", "(").replace("}", ")")


@dataclass
class CaptionEvent:
    """One dialogue line shown over ``[start, end)``."""

    start: float
    end: float
    text: str

    def render(self) -> str:
        return (
            f"Dialogue: 0,{format_ass_timestamp(self.start)},{format_ass_timestamp(self.end)},"
            f"{STYLE_NAME},,0,0,0,,{self.text}"
        )


@dataclass
class CaptionTrack:
    """An ASS document: canvas size, a single style and ordered events."""

    width: int
    height: int
    font_name: str
    font_size: int
    primary_colour: str
    outline_colour: str
    alignment: int
    margin_v: int
    events: list[CaptionEvent] = field(default_factory=list)

    def style_line(self) -> str:
        return (
            f"Style: {STYLE_NAME},{self.font_name},{self.font_size},{self.primary_colour},"
            f"{SECONDARY_COLOUR},{self.outline_colour},{BACK_COLOUR},"
            f"-1,0,0,0,100,100,0,0,1,4,0,{self.alignment},20,20,{self.margin_v},1"
        )

    def render(self) -> str:
        header = "\n".join(
            [
                "[Script Info]",
                "ScriptType: v4.00+",
                f"PlayResX: {self.width}",
                f"PlayResY: {self.height}",
                "WrapStyle: 0",
                "ScaledBorderAndShadow: yes",
                "",
                "[V4+ Styles]",
                f"Format: {STYLE_FORMAT}",
                self.style_line(),
                "",
                "[Events]",
                f"Format: {EVENT_FORMAT}",
            ]
        )
        lines = [event.render() for event in self.events]
        return header + "\n" + "\n".join(lines) + ("\n" if lines else "")


def build_caption_track(
    segments: list[StoryboardSegment],
    style: SubtitleStyle,
    video_format: VideoFormat,
) -> CaptionTrack:
    """Lay out one caption event per segment using the channel's style.

    Raises:
        ValidationError: If there are no segments or a duration is not positive.
    """
    if not segments:
        raise ValidationError("Cannot build captions for an empty storyboard")
    for seg in segments:
        if seg.duration <= 0 or not math.isfinite(seg.duration):
            raise ValidationError(f"Segment {seg.id} has invalid duration {seg.duration}")

    width, height = video_format.resolution
    font_size = math.floor(BASE_FONT_SIZE[video_format] * style.font_size / 100)

    track = CaptionTrack(
        width=width,
        height=height,
        font_name=style.font_name,
        font_size=font_size,
        primary_colour=hex_to_ass_color(style.primary_color),
        outline_colour=hex_to_ass_color(style.outline_color),
        alignment=ALIGNMENT_CODES[style.alignment],
        margin_v=MARGIN_V[video_format],
    )
    for seg, (start, end) in zip(segments, segment_bounds(segments)):
        track.events.append(CaptionEvent(start=start, end=end, text=sanitize_event_text(seg.script_text)))
    return track


def encode_captions(
    segments: list[StoryboardSegment],
    style: SubtitleStyle,
    video_format: VideoFormat,
) -> str:
    """Render timed segments into a standalone ASS caption document."""
    return build_caption_track(segments, style, video_format).render()
