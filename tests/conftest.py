"""Pytest configuration and fixtures for Reelforge tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

from reelforge.config import EngineConfig
from reelforge.models.schema import ChannelProfile, VideoFormat
from reelforge.pipeline import Pipeline
from reelforge.adapters.profiles import StaticProfileProvider
from reelforge.ports import Collaborators
from reelforge.store.blobs import LocalBlobStore
from reelforge.store.local import LocalProjectRepository

from fakes import (
    NARRATION,
    FakeCompressor,
    FakeExtractor,
    FakeImages,
    FakeRenderer,
    FakeScriptGenerator,
    FakeSpeech,
)


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def profile() -> ChannelProfile:
    """A vertical channel with a voice and visual style configured."""
    return ChannelProfile(
        id="ocean",
        name="Ocean Facts",
        persona="An enthusiastic marine biologist",
        visual_style="cinematic underwater photography",
        voice_id="Kore",
        format=VideoFormat.SHORTS,
    )


@pytest.fixture
def config(temp_dir: Path) -> EngineConfig:
    return EngineConfig(data_dir=str(temp_dir), apify_token="apify-test-token")


@pytest.fixture
def collaborators(temp_dir: Path, profile: ChannelProfile) -> Collaborators:
    """Collaborators backed by fakes and a real local blob store."""
    return Collaborators(
        profiles=StaticProfileProvider([profile]),
        blobs=LocalBlobStore(temp_dir / "blobs"),
        script_generator=FakeScriptGenerator(),
        speech=FakeSpeech(),
        images=FakeImages(),
        transcripts=FakeExtractor(),
        compressor=FakeCompressor(),
        renderer=FakeRenderer(),
    )


@pytest.fixture
def repository(temp_dir: Path) -> LocalProjectRepository:
    return LocalProjectRepository(temp_dir / "projects")


@pytest.fixture
def pipeline(repository, collaborators, config) -> Pipeline:
    return Pipeline(repository, collaborators, config)


@pytest.fixture
def no_apify_token_env():
    """Ensure APIFY_TOKEN is not set for tests that check its absence."""
    original = os.environ.get("APIFY_TOKEN")
    os.environ.pop("APIFY_TOKEN", None)
    yield
    if original is not None:
        os.environ["APIFY_TOKEN"] = original


@pytest.fixture
def narration() -> str:
    """A multi-sentence narration long enough to span several chunks."""
    return NARRATION
