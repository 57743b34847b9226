"""Durable project store on Supabase (PostgREST over HTTP).

Rows live in the ``video_projects`` table with snake_case columns matching
the ``Project`` fields. The lease compare-and-swap is a filtered ``PATCH``
that only matches an unleased (or expired) row; PostgREST returns the
updated rows, so an empty response means the swap lost.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

import requests
from pydantic import ValidationError as ModelValidationError

from reelforge.errors import LeaseError, ProjectNotFoundError, StoreError
from reelforge.models.schema import Project, ProjectStatus, utcnow
from reelforge.store.base import ProjectRepository

logger = logging.getLogger(__name__)


class SupabaseProjectRepository(ProjectRepository):
    """Project records in a Supabase table."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "video_projects",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the durable store client.

        Args:
            url: Supabase project URL (``https://<ref>.supabase.co``).
            key: Service or anon key with access to the table.
            table: Project table name.
            timeout: Per-request timeout in seconds.
            session: Optional ``requests.Session`` to reuse connections.
        """
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        params: dict[str, str],
        payload: dict[str, Any] | None = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        start_time = time.perf_counter()
        try:
            response = self._session.request(
                method,
                self.endpoint,
                params=params,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"Durable store {method} failed: {e}") from e

        elapsed = time.perf_counter() - start_time
        logger.debug(f"{method} {self.endpoint} -> {response.status_code} in {elapsed:.2f}s")

        if not response.ok:
            raise StoreError(
                f"Durable store {method} returned {response.status_code}: {response.text[:200]}"
            )
        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"Durable store returned invalid JSON: {e}") from e
        return data if isinstance(data, list) else [data]

    @staticmethod
    def _to_row(project: Project) -> dict[str, Any]:
        return project.model_dump(mode="json")

    @staticmethod
    def _from_row(row: dict[str, Any]) -> Project:
        row = dict(row)
        row["stage_data"] = row.get("stage_data") or {}
        try:
            return Project.model_validate(row)
        except ModelValidationError as e:
            raise StoreError(f"Malformed project row {row.get('id')}: {e}") from e

    def create(self, project: Project) -> Project:
        rows = self._request("POST", {}, self._to_row(project), prefer="return=representation")
        return self._from_row(rows[0]) if rows else project

    def get(self, project_id: str) -> Project:
        rows = self._request("GET", {"id": f"eq.{project_id}", "select": "*"})
        if not rows:
            raise ProjectNotFoundError(f"Project not found: {project_id}")
        return self._from_row(rows[0])

    def list(self, channel_id: str | None = None) -> list[Project]:
        params = {"select": "*", "order": "created_at.desc"}
        if channel_id is not None:
            params["channel_id"] = f"eq.{channel_id}"
        return [self._from_row(row) for row in self._request("GET", params)]

    def save(self, project: Project) -> Project:
        self._request(
            "POST",
            {"on_conflict": "id"},
            self._to_row(project),
            prefer="resolution=merge-duplicates,return=minimal",
        )
        return project

    def delete(self, project_id: str) -> None:
        self._request("DELETE", {"id": f"eq.{project_id}"})

    def acquire_lease(self, project_id: str, token: str, ttl: timedelta) -> Project:
        now = utcnow()
        rows = self._request(
            "PATCH",
            {
                "id": f"eq.{project_id}",
                "or": f"(lease_token.is.null,lease_expires_at.lt.{now.isoformat()})",
            },
            {
                "lease_token": token,
                "lease_expires_at": (now + ttl).isoformat(),
                "status": ProjectStatus.PROCESSING.value,
                "updated_at": now.isoformat(),
            },
            prefer="return=representation",
        )
        if not rows:
            self.get(project_id)
            raise LeaseError(f"Project {project_id} is already being processed")
        return self._from_row(rows[0])

    def release_lease(self, project: Project, token: str) -> Project:
        final = project.model_copy(
            update={"lease_token": None, "lease_expires_at": None, "updated_at": utcnow()}
        )
        rows = self._request(
            "PATCH",
            {"id": f"eq.{project.id}", "lease_token": f"eq.{token}"},
            self._to_row(final),
            prefer="return=representation",
        )
        if not rows:
            raise LeaseError(f"Lease on project {project.id} is no longer held by this run")
        return self._from_row(rows[0])
