"""Exception hierarchy for Reelforge.

Every failure the engine can persist on a project derives from
``ReelforgeError`` so the outer boundary can tell an annotated failure
from an unexpected one.
"""

from __future__ import annotations


class ReelforgeError(Exception):
    """Base error for Reelforge."""

    pass


class ConfigurationError(ReelforgeError):
    """A required credential, collaborator or channel profile is missing.

    Raised before any external call is attempted; fixing it needs user action.
    """

    pass


class CollaboratorError(ReelforgeError):
    """An external generation, extraction or storage call failed."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class ValidationError(ReelforgeError):
    """Degenerate input to a timing or caption algorithm, or missing prior stage output."""

    pass


class StoreError(ReelforgeError):
    """Error reading or writing project records or blobs."""

    pass


class ProjectNotFoundError(StoreError):
    """No project exists with the requested id."""

    pass


class LeaseError(StoreError):
    """The project is leased by another run, or the caller lost its lease."""

    pass


class PipelineError(ReelforgeError):
    """The engine was asked to do something the project's state does not allow."""

    pass
