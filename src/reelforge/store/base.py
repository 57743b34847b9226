"""Repository interface for project records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta

from reelforge.models.schema import Project


class ProjectRepository(ABC):
    """Persistence for ``Project`` records.

    ``acquire_lease``/``release_lease`` form a per-project compare-and-swap:
    a run holds the lease from before its handler executes until its final
    write, and no other run can take it while it is unexpired.
    """

    @abstractmethod
    def create(self, project: Project) -> Project:
        pass

    @abstractmethod
    def get(self, project_id: str) -> Project:
        """Load a project.

        Raises:
            ProjectNotFoundError: If no such project exists.
        """
        pass

    @abstractmethod
    def list(self, channel_id: str | None = None) -> list[Project]:
        """All projects, newest first, optionally for one channel."""
        pass

    @abstractmethod
    def save(self, project: Project) -> Project:
        """Insert or replace the record as given."""
        pass

    @abstractmethod
    def delete(self, project_id: str) -> None:
        pass

    @abstractmethod
    def acquire_lease(self, project_id: str, token: str, ttl: timedelta) -> Project:
        """Take the project's lease and mark it PROCESSING.

        Raises:
            LeaseError: If another unexpired lease is held.
            ProjectNotFoundError: If no such project exists.
        """
        pass

    @abstractmethod
    def release_lease(self, project: Project, token: str) -> Project:
        """Write ``project`` as the final state of a run and clear the lease.

        Raises:
            LeaseError: If ``token`` no longer holds the lease.
        """
        pass
