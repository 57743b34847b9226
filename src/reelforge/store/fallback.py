"""Durable store with a local cache behind it.

Every write is attempted against the durable store and then mirrored to the
cache unconditionally. When the durable store is unreachable the cache
answers alone. The two copies are reconciled by last-writer-wins on
``updated_at``: reads consult both, return the newer record, and push a
newer cached record back to the durable store once it is reachable again.

Deletes are the exception: they require the durable store so a project
removed while offline cannot reappear from the durable copy later.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from reelforge.errors import LeaseError, ProjectNotFoundError, StoreError
from reelforge.models.schema import Project
from reelforge.store.base import ProjectRepository

logger = logging.getLogger(__name__)


def _newer(primary: Project | None, cached: Project | None) -> Project | None:
    """The more recently updated record; the durable copy wins ties."""
    if primary is None:
        return cached
    if cached is None:
        return primary
    return cached if cached.updated_at > primary.updated_at else primary


class FallbackProjectRepository(ProjectRepository):
    """Compose a durable repository with a local cache repository."""

    def __init__(self, primary: ProjectRepository, cache: ProjectRepository) -> None:
        self.primary = primary
        self.cache = cache

    def _mirror(self, project: Project) -> None:
        self.cache.save(project)

    def _repair_primary(self, project: Project) -> None:
        try:
            self.primary.save(project)
            logger.info(f"Repaired durable copy of project {project.id} from local cache")
        except StoreError as e:
            logger.warning(f"Could not repair durable copy of project {project.id}: {e}")

    def create(self, project: Project) -> Project:
        try:
            project = self.primary.create(project)
        except StoreError as e:
            logger.warning(f"Durable create failed for {project.id}, keeping local copy: {e}")
        self._mirror(project)
        return project

    def get(self, project_id: str) -> Project:
        primary_ok = True
        try:
            durable: Project | None = self.primary.get(project_id)
        except ProjectNotFoundError:
            durable = None
        except StoreError as e:
            logger.warning(f"Durable read failed for {project_id}, using local cache: {e}")
            primary_ok = False
            durable = None

        try:
            cached: Project | None = self.cache.get(project_id)
        except ProjectNotFoundError:
            cached = None

        chosen = _newer(durable, cached)
        if chosen is None:
            raise ProjectNotFoundError(f"Project not found: {project_id}")

        if chosen is cached and cached is not durable and primary_ok:
            self._repair_primary(cached)
        elif chosen is durable and (cached is None or cached.updated_at != durable.updated_at):
            self._mirror(durable)
        return chosen

    def list(self, channel_id: str | None = None) -> list[Project]:
        merged: dict[str, Project] = {p.id: p for p in self.cache.list(channel_id)}
        try:
            durable = self.primary.list(channel_id)
        except StoreError as e:
            logger.warning(f"Durable list failed, using local cache: {e}")
            durable = []
        for project in durable:
            merged[project.id] = _newer(project, merged.get(project.id))
        return sorted(merged.values(), key=lambda p: p.created_at, reverse=True)

    def save(self, project: Project) -> Project:
        try:
            self.primary.save(project)
        except StoreError as e:
            logger.warning(f"Durable write failed for {project.id}, saved locally only: {e}")
        self._mirror(project)
        return project

    def delete(self, project_id: str) -> None:
        self.primary.delete(project_id)
        self.cache.delete(project_id)

    def acquire_lease(self, project_id: str, token: str, ttl: timedelta) -> Project:
        # reconcile first so the lease is taken on the newest copy
        self.get(project_id)
        try:
            leased = self.primary.acquire_lease(project_id, token, ttl)
        except (LeaseError, ProjectNotFoundError):
            raise
        except StoreError as e:
            logger.warning(f"Durable lease failed for {project_id}, leasing locally: {e}")
            return self.cache.acquire_lease(project_id, token, ttl)
        self._mirror(leased)
        return leased

    def release_lease(self, project: Project, token: str) -> Project:
        try:
            final = self.primary.release_lease(project, token)
        except LeaseError:
            # a lease taken locally while the durable store was down
            if self.cache.get(project.id).lease_token != token:
                raise
            final = self.cache.release_lease(project, token)
            self._repair_primary(final)
            return final
        except StoreError as e:
            logger.warning(f"Durable release failed for {project.id}, releasing locally: {e}")
            return self.cache.release_lease(project, token)
        self._mirror(final)
        return final
