"""Reelforge: turn a theme into a narrated short-form video, one stage at a time."""

from reelforge.config import EngineConfig
from reelforge.errors import (
    CollaboratorError,
    ConfigurationError,
    LeaseError,
    PipelineError,
    ProjectNotFoundError,
    ReelforgeError,
    StoreError,
    ValidationError,
)
from reelforge.models.schema import (
    ChannelProfile,
    Project,
    ProjectStatus,
    ScriptChunk,
    Stage,
    StoryboardSegment,
    SubtitleStyle,
    VideoFormat,
)
from reelforge.pipeline import Pipeline

__version__ = "0.1.0"

__all__ = [
    "Pipeline",
    "EngineConfig",
    "Project",
    "ProjectStatus",
    "Stage",
    "ChannelProfile",
    "SubtitleStyle",
    "VideoFormat",
    "ScriptChunk",
    "StoryboardSegment",
    "ReelforgeError",
    "ConfigurationError",
    "CollaboratorError",
    "ValidationError",
    "StoreError",
    "ProjectNotFoundError",
    "LeaseError",
    "PipelineError",
    "__version__",
]
