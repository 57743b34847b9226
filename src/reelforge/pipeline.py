"""Main pipeline orchestration for Reelforge."""

from __future__ import annotations

import logging
import time
import uuid
from datetime import timedelta
from typing import Any

from tqdm import tqdm

from reelforge.config import EngineConfig
from reelforge.errors import ConfigurationError, LeaseError, PipelineError, ReelforgeError
from reelforge.models.schema import ChannelProfile, Project, ProjectStatus, Stage, utcnow
from reelforge.ports import Collaborators
from reelforge.stages import default_handlers
from reelforge.stages.base import StageContext, StageHandler, StageOutcome
from reelforge.store.base import ProjectRepository
from reelforge.utils.logging import truncate

logger = logging.getLogger(__name__)


def _create_pipeline_progress(total_stages: int, desc: str = "Processing") -> tqdm:
    """Create a progress bar for pipeline stages."""
    return tqdm(
        total=total_stages,
        desc=desc,
        unit="stage",
        bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} stages [{elapsed}<{remaining}]",
        leave=True,
    )


class Pipeline:
    """Reelforge stage engine.

    Advances a project one stage per ``run``: the handler registered for the
    project's current stage reads earlier outputs, calls its collaborators and
    returns a new ``stage_data`` entry, which the engine merges in before
    moving to the next stage, stopping for review, or recording the failure.

    Example:
        >>> pipeline = Pipeline(repository, collaborators, EngineConfig())
        >>> project = pipeline.create_project("channel-1", "Deep sea creatures")
        >>> project = pipeline.run(project.id)
        >>> project.current_stage
        <Stage.SCRIPT: 'SCRIPT'>
    """

    def __init__(
        self,
        repository: ProjectRepository,
        collaborators: Collaborators,
        config: EngineConfig | None = None,
        handlers: dict[Stage, StageHandler] | None = None,
    ) -> None:
        """Initialize a pipeline.

        Args:
            repository: Where project records are persisted.
            collaborators: Profile provider, blob store and generators.
            config: Engine configuration handed to every handler.
            handlers: Stage handlers; defaults to the built-in registry.
        """
        self.config = config or EngineConfig()
        self.repository = repository
        self.collaborators = collaborators
        self._handlers = dict(handlers) if handlers is not None else default_handlers()

    def register(self, handler: StageHandler) -> None:
        """Install or replace the handler for ``handler.stage``."""
        if handler.stage is Stage.DONE:
            raise ValueError("DONE is terminal and cannot have a handler")
        self._handlers[handler.stage] = handler

    def handler_for(self, stage: Stage) -> StageHandler | None:
        return self._handlers.get(stage)

    # --- projects ---

    def create_project(
        self,
        channel_id: str,
        theme: str,
        title: str | None = None,
        reference: dict[str, Any] | None = None,
    ) -> Project:
        """Create a project at the first stage.

        Args:
            channel_id: Channel whose profile drives generation.
            theme: Topic of the video.
            title: Working title; defaults to the theme.
            reference: Optional reference material (``video_id`` and/or
                ``transcript``) for the REFERENCE stage.
        """
        stage_data = {Stage.REFERENCE.key: dict(reference)} if reference else {}
        project = Project(
            channel_id=channel_id,
            theme=theme,
            title=title or theme,
            stage_data=stage_data,
        )
        project = self.repository.create(project)
        logger.info(f"Created project {project.id} for channel {channel_id}")
        return project

    def get_project(self, project_id: str) -> Project:
        return self.repository.get(project_id)

    def list_projects(self, channel_id: str | None = None) -> list[Project]:
        return self.repository.list(channel_id)

    def delete_project(self, project_id: str) -> None:
        self.repository.delete(project_id)
        logger.info(f"Deleted project {project_id}")

    # --- execution ---

    def _lease(self, project_id: str) -> tuple[Project, str]:
        token = uuid.uuid4().hex
        ttl = timedelta(seconds=self.config.lease_ttl_seconds)
        return self.repository.acquire_lease(project_id, token, ttl), token

    def _resolve_profile(self, project: Project) -> ChannelProfile:
        profile = self.collaborators.profiles.get_profile(project.channel_id)
        if profile is None:
            raise ConfigurationError(f"Profile not found for channel {project.channel_id}")
        return profile

    def run(self, project_id: str) -> Project:
        """Run the handler for the project's current stage.

        Any handler failure is persisted as ``status=ERROR`` with a message
        naming the stage, and the project is returned; running it again
        retries the same stage from its persisted inputs.

        Returns:
            The project as persisted after the run.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            PipelineError: If the project is finished or awaiting review.
            LeaseError: If another run holds the project.
        """
        project = self.repository.get(project_id)
        if project.current_stage is Stage.DONE:
            raise PipelineError(f"Project {project_id} is already complete")
        if project.status is ProjectStatus.REVIEW:
            raise PipelineError(
                f"Project {project_id} is awaiting review of {project.current_stage.value}; approve it first"
            )

        project, token = self._lease(project_id)
        stage = project.current_stage
        start_time = time.perf_counter()

        try:
            handler = self.handler_for(stage)
            if handler is None:
                raise ConfigurationError(f"No handler registered for stage {stage.value}")
            context = StageContext(
                project=project.model_copy(deep=True),
                profile=self._resolve_profile(project),
                config=self.config,
                collaborators=self.collaborators,
            )
            handler.validate(context)
            logger.info(f"Project {project_id}: running {stage.value} ({handler.description})")
            outcome = handler.run(context)
            result = self._record_success(project, token, stage, outcome)
        except LeaseError:
            raise
        except Exception as e:
            return self._record_failure(project, token, stage, e)

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Project {project_id}: {stage.value} finished in {elapsed:.2f}s -> "
            f"{result.current_stage.value} [{result.status.value}]"
        )
        return result

    def _record_success(
        self, project: Project, token: str, stage: Stage, outcome: StageOutcome
    ) -> Project:
        stage_data = {**project.stage_data, stage.key: outcome.payload}
        if outcome.review:
            update = {"stage_data": stage_data, "status": ProjectStatus.REVIEW, "error_message": None}
        else:
            update = {
                "stage_data": stage_data,
                "current_stage": stage.next(),
                "status": ProjectStatus.READY,
                "error_message": None,
            }
        return self.repository.release_lease(project.model_copy(update=update), token)

    def _record_failure(self, project: Project, token: str, stage: Stage, error: Exception) -> Project:
        cause = truncate(f"{type(error).__name__}: {error}", self.config.error_message_limit)
        message = f"Stage {stage.value} failed: {cause}"
        if isinstance(error, ReelforgeError):
            logger.error(f"Project {project.id}: {message}")
        else:
            logger.exception(f"Project {project.id}: {message}")
        failed = project.model_copy(update={"status": ProjectStatus.ERROR, "error_message": message})
        return self.repository.release_lease(failed, token)

    def approve(self, project_id: str, updates: dict[str, Any] | None = None) -> Project:
        """Approve the output held at REVIEW and advance past it.

        Args:
            project_id: Project awaiting review.
            updates: Reviewer edits merged into the current stage's entry,
                e.g. a corrected ``transcript``.

        Raises:
            PipelineError: If the project is not awaiting review.
            LeaseError: If another run holds the project.
        """
        project = self.repository.get(project_id)
        if project.status is not ProjectStatus.REVIEW:
            raise PipelineError(
                f"Project {project_id} is not awaiting review (status={project.status.value})"
            )

        project, token = self._lease(project_id)
        stage = project.current_stage
        entry = {**(project.stage_output(stage) or {}), **(updates or {})}
        entry["approved_at"] = utcnow().isoformat()
        approved = project.model_copy(
            update={
                "stage_data": {**project.stage_data, stage.key: entry},
                "current_stage": stage.next(),
                "status": ProjectStatus.READY,
                "error_message": None,
            }
        )
        result = self.repository.release_lease(approved, token)
        logger.info(f"Project {project_id}: {stage.value} approved -> {result.current_stage.value}")
        return result

    def run_until_blocked(self, project_id: str, show_progress: bool = False) -> Project:
        """Run stages back to back until the project finishes, errors or needs review."""
        project = self.repository.get(project_id)
        remaining = len(Stage.ordered()) - 1 - project.current_stage.position
        pbar = _create_pipeline_progress(remaining, f"Project {project_id[:8]}") if show_progress else None

        try:
            while project.current_stage is not Stage.DONE and project.status in (
                ProjectStatus.READY,
                ProjectStatus.ERROR,
            ):
                if pbar is not None:
                    pbar.set_description(f"Stage: {project.current_stage.value}")
                before = project.current_stage
                project = self.run(project_id)
                if project.status is ProjectStatus.ERROR:
                    break
                if pbar is not None and project.current_stage is not before:
                    pbar.update(1)
        finally:
            if pbar is not None:
                pbar.close()
        return project
