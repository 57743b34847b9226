"""Data models for Reelforge."""

from reelforge.models.schema import (
    CaptionAlignment,
    ChannelProfile,
    Project,
    ProjectStatus,
    ScriptChunk,
    SegmentAssets,
    Stage,
    StoryboardSegment,
    SubtitleStyle,
    VideoFormat,
    VideoMetadata,
)

__all__ = [
    "CaptionAlignment",
    "ChannelProfile",
    "Project",
    "ProjectStatus",
    "ScriptChunk",
    "SegmentAssets",
    "Stage",
    "StoryboardSegment",
    "SubtitleStyle",
    "VideoFormat",
    "VideoMetadata",
]
