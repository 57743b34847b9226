"""Command-line interface for Reelforge."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError as ModelValidationError

from reelforge import __version__
from reelforge.adapters import JsonProfileProvider, build_pipeline
from reelforge.captions import encode_captions
from reelforge.config import EngineConfig
from reelforge.errors import ReelforgeError
from reelforge.models.schema import ChannelProfile, Project, ProjectStatus, StoryboardSegment
from reelforge.pipeline import Pipeline
from reelforge.timing import chunk_script
from reelforge.utils.logging import get_logger

app = typer.Typer(
    name="reelforge",
    help="Turn a theme into a narrated short-form video.",
    add_completion=False,
    no_args_is_help=True,
)

DEFAULT_DATA_DIR = Path("./reelforge_data")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"reelforge {__version__}")
        raise typer.Exit()


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _pipeline(ctx: typer.Context) -> Pipeline:
    options = ctx.obj or {}
    data_dir = options.get("data_dir", DEFAULT_DATA_DIR)
    profiles = options.get("profiles") or data_dir / "profiles.json"
    config = EngineConfig(data_dir=str(data_dir))
    return build_pipeline(config, profiles=JsonProfileProvider(profiles))


def _summary(project: Project) -> str:
    line = (
        f"{project.id}  {project.channel_id:<16} {project.current_stage.value:<15} "
        f"{project.status.value:<10} {project.title}"
    )
    if project.error_message:
        line += f"\n    {project.error_message}"
    return line


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}: {e}")


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Annotated[
        Path,
        typer.Option(
            "--data-dir",
            "-d",
            help="Directory for the local project cache and blobs",
            envvar="REELFORGE_DATA_DIR",
        ),
    ] = DEFAULT_DATA_DIR,
    profiles: Annotated[
        Optional[Path],
        typer.Option(
            "--profiles",
            help="Channel profiles JSON file (default: <data-dir>/profiles.json)",
            envvar="REELFORGE_PROFILES",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log warnings and errors"),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Reelforge: stage-by-stage video generation."""
    load_dotenv()
    get_logger(level=logging.WARNING if quiet else logging.INFO)
    ctx.obj = {"data_dir": data_dir, "profiles": profiles}


@app.command()
def create(
    ctx: typer.Context,
    channel: Annotated[str, typer.Argument(help="Channel id whose profile drives generation")],
    theme: Annotated[str, typer.Argument(help="Topic of the video")],
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Working title")] = None,
    video_id: Annotated[
        Optional[str],
        typer.Option("--video-id", help="Reference YouTube video to extract a transcript from"),
    ] = None,
    transcript_file: Annotated[
        Optional[Path],
        typer.Option("--transcript-file", help="Reference transcript to use as-is", exists=True),
    ] = None,
) -> None:
    """Create a project at the first stage.

    Example:
        reelforge create history-shorts "The fall of Constantinople" --video-id dQw4w9WgXcQ
    """
    reference = {}
    if video_id:
        reference["video_id"] = video_id
    if transcript_file:
        reference["transcript"] = _read_text(transcript_file)

    try:
        project = _pipeline(ctx).create_project(channel, theme, title=title, reference=reference or None)
    except ReelforgeError as e:
        _fail(str(e))
    typer.echo(project.id)


@app.command("list")
def list_projects(
    ctx: typer.Context,
    channel: Annotated[Optional[str], typer.Option("--channel", "-c", help="Only this channel")] = None,
) -> None:
    """List projects, newest first."""
    try:
        projects = _pipeline(ctx).list_projects(channel)
    except ReelforgeError as e:
        _fail(str(e))
    if not projects:
        typer.echo("No projects.")
        return
    for project in projects:
        typer.echo(_summary(project))


@app.command()
def show(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project id")],
) -> None:
    """Print a project record as JSON."""
    try:
        project = _pipeline(ctx).get_project(project_id)
    except ReelforgeError as e:
        _fail(str(e))
    typer.echo(project.model_dump_json(indent=2))


@app.command()
def run(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project id")],
    until_blocked: Annotated[
        bool,
        typer.Option(
            "--until-blocked",
            help="Keep running stages until the project is done, errors or needs review",
        ),
    ] = False,
) -> None:
    """Run the project's current stage (retrying it if the project is in ERROR)."""
    pipeline = _pipeline(ctx)
    try:
        if until_blocked:
            project = pipeline.run_until_blocked(project_id, show_progress=True)
        else:
            project = pipeline.run(project_id)
    except ReelforgeError as e:
        _fail(str(e))

    typer.echo(_summary(project))
    if project.status is ProjectStatus.ERROR:
        raise typer.Exit(1)


@app.command()
def approve(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project id")],
    transcript_file: Annotated[
        Optional[Path],
        typer.Option("--transcript-file", help="Corrected transcript replacing the extracted one", exists=True),
    ] = None,
) -> None:
    """Approve the output awaiting review and advance the project."""
    updates = {"transcript": _read_text(transcript_file)} if transcript_file else None
    try:
        project = _pipeline(ctx).approve(project_id, updates)
    except ReelforgeError as e:
        _fail(str(e))
    typer.echo(_summary(project))


@app.command()
def delete(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Delete a project record."""
    if not yes:
        typer.confirm(f"Delete project {project_id}?", abort=True)
    try:
        _pipeline(ctx).delete_project(project_id)
    except ReelforgeError as e:
        _fail(str(e))
    typer.echo(f"Deleted {project_id}")


@app.command()
def chunk(
    script_file: Annotated[
        Path,
        typer.Argument(help="Narration text file", exists=True, readable=True),
    ],
    words_per_second: Annotated[float, typer.Option("--wps", help="Speaking rate")] = 2.5,
) -> None:
    """Split a narration script into timed chunks and print them as JSON."""
    try:
        chunks = chunk_script(_read_text(script_file), words_per_second=words_per_second)
    except ReelforgeError as e:
        _fail(str(e))
    typer.echo(json.dumps([c.model_dump() for c in chunks], indent=2, ensure_ascii=False))


@app.command()
def captions(
    storyboard_file: Annotated[
        Path,
        typer.Argument(help="JSON list of storyboard segments", exists=True, readable=True),
    ],
    profile_file: Annotated[
        Optional[Path],
        typer.Option("--profile-file", help="Channel profile JSON supplying style and format", exists=True),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output .ass file path (default: stdout)"),
    ] = None,
) -> None:
    """Encode a storyboard into an ASS caption document.

    Example:
        reelforge captions storyboard.json --profile-file channel.json -o captions.ass
    """
    try:
        raw = json.loads(_read_text(storyboard_file))
        if isinstance(raw, dict):
            raw = raw.get("storyboard", [])
        segments = [StoryboardSegment.model_validate(item) for item in raw]
        if profile_file:
            profile = ChannelProfile.model_validate_json(_read_text(profile_file))
        else:
            profile = ChannelProfile(id="default")
        document = encode_captions(segments, profile.subtitle_style, profile.format)
    except (json.JSONDecodeError, ModelValidationError) as e:
        _fail(f"Invalid input: {e}")
    except ReelforgeError as e:
        _fail(str(e))

    if output:
        output.write_text(document, encoding="utf-8")
        typer.echo(f"Captions written to: {output}")
    else:
        typer.echo(document, nl=False)


if __name__ == "__main__":
    app()
