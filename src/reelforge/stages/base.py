"""Common interface for stage handlers.

A handler is stateless: everything it needs comes from the ``StageContext``
(the persisted project, its channel profile, the engine configuration and
the collaborators), so re-running a stage after a failure behaves exactly
like the first attempt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, TypeVar

from reelforge.config import EngineConfig
from reelforge.errors import ConfigurationError, ValidationError
from reelforge.models.schema import ChannelProfile, Project, Stage, StoryboardSegment
from reelforge.ports import Collaborators

T = TypeVar("T")


@dataclass
class StageContext:
    """Inputs available to a handler for one run."""

    project: Project
    profile: ChannelProfile
    config: EngineConfig
    collaborators: Collaborators

    def require_output(self, stage: Stage) -> dict[str, Any]:
        """The persisted output of an earlier stage.

        Raises:
            ValidationError: If that stage has not produced output yet.
        """
        payload = self.project.stage_output(stage)
        if not payload:
            raise ValidationError(
                f"{stage.value} output is missing; run the {stage.value} stage first"
            )
        return payload

    def require_blob(self, key: str) -> bytes:
        """Load a blob written by an earlier stage.

        Raises:
            ValidationError: If the blob does not exist.
        """
        data = self.collaborators.blobs.get(key)
        if not data:
            raise ValidationError(f"Blob {key!r} not found; re-run the stage that produces it")
        return data


@dataclass
class StageOutcome:
    """Result of a successful handler run.

    Attributes:
        payload: The stage's ``stage_data`` entry.
        review: Stop at REVIEW instead of advancing.
    """

    payload: dict[str, Any]
    review: bool = False


class StageHandler(ABC):
    """Produces one stage's output from the project's earlier outputs."""

    stage: Stage
    description: str = ""

    def validate(self, context: StageContext) -> None:
        """Check configuration before any external call.

        Raises:
            ConfigurationError: If something the stage needs is not configured.
        """
        pass

    @abstractmethod
    def run(self, context: StageContext) -> StageOutcome:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.stage.value}>"


def require_collaborator(collaborator: T | None, what: str, stage: Stage) -> T:
    """Return the collaborator or fail the stage with a configuration error."""
    if collaborator is None:
        raise ConfigurationError(f"No {what} configured; {stage.value} stage cannot run")
    return collaborator


def load_storyboard(payload: dict[str, Any], stage: Stage) -> list[StoryboardSegment]:
    """Parse the ``storyboard`` list stored in a stage payload."""
    raw = payload.get("storyboard") or []
    if not raw:
        raise ValidationError(f"{stage.value} output has no storyboard")
    return [StoryboardSegment.model_validate(item) for item in raw]


def dump_storyboard(segments: list[StoryboardSegment]) -> list[dict[str, Any]]:
    return [seg.model_dump(mode="json") for seg in segments]
