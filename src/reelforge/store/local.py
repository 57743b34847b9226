"""Local JSON-file project cache.

One document per project under a directory. Writes go to a temporary file
and are moved into place so a crash never leaves a half-written record.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from datetime import timedelta
from pathlib import Path

from pydantic import ValidationError as ModelValidationError

from reelforge.errors import LeaseError, ProjectNotFoundError, StoreError
from reelforge.models.schema import Project, ProjectStatus, utcnow
from reelforge.store.base import ProjectRepository

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalProjectRepository(ProjectRepository):
    """Project records stored as JSON files.

    Lease compare-and-swap is guarded by a lock, so it is atomic within one
    process only.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path(self, project_id: str) -> Path:
        if not _SAFE_ID.match(project_id) or project_id in {".", ".."}:
            raise StoreError(f"Invalid project id: {project_id!r}")
        return self.directory / f"{project_id}.json"

    def _read(self, path: Path) -> Project:
        try:
            return Project.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ModelValidationError) as e:
            raise StoreError(f"Failed to read cached project {path.name}: {e}") from e

    def _write(self, project: Project) -> None:
        path = self._path(project.id)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(project.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise StoreError(f"Failed to write cached project {project.id}: {e}") from e

    def create(self, project: Project) -> Project:
        with self._lock:
            if self._path(project.id).exists():
                raise StoreError(f"Project {project.id} already exists")
            self._write(project)
        return project

    def get(self, project_id: str) -> Project:
        path = self._path(project_id)
        with self._lock:
            if not path.exists():
                raise ProjectNotFoundError(f"Project not found: {project_id}")
            return self._read(path)

    def list(self, channel_id: str | None = None) -> list[Project]:
        with self._lock:
            projects = [self._read(path) for path in sorted(self.directory.glob("*.json"))]
        if channel_id is not None:
            projects = [p for p in projects if p.channel_id == channel_id]
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    def save(self, project: Project) -> Project:
        with self._lock:
            self._write(project)
        return project

    def delete(self, project_id: str) -> None:
        path = self._path(project_id)
        with self._lock:
            path.unlink(missing_ok=True)

    def acquire_lease(self, project_id: str, token: str, ttl: timedelta) -> Project:
        with self._lock:
            project = self.get(project_id)
            now = utcnow()
            if project.is_leased(now):
                raise LeaseError(f"Project {project_id} is already being processed")
            leased = project.model_copy(
                update={
                    "lease_token": token,
                    "lease_expires_at": now + ttl,
                    "status": ProjectStatus.PROCESSING,
                    "updated_at": now,
                }
            )
            self._write(leased)
        return leased

    def release_lease(self, project: Project, token: str) -> Project:
        with self._lock:
            current = self.get(project.id)
            if current.lease_token != token:
                raise LeaseError(f"Lease on project {project.id} is no longer held by this run")
            final = project.model_copy(
                update={"lease_token": None, "lease_expires_at": None, "updated_at": utcnow()}
            )
            self._write(final)
        return final
