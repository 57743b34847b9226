"""Concrete collaborators and factories for assembling a working engine."""

from __future__ import annotations

import logging

from reelforge.adapters.apify import ApifyTranscriptExtractor
from reelforge.adapters.ffmpeg import FfmpegAudioCompressor, FfmpegVideoRenderer
from reelforge.adapters.profiles import JsonProfileProvider, StaticProfileProvider
from reelforge.config import EngineConfig
from reelforge.pipeline import Pipeline
from reelforge.ports import (
    Collaborators,
    ImageGenerator,
    ProfileProvider,
    ScriptGenerator,
    SpeechSynthesizer,
)
from reelforge.store import (
    FallbackProjectRepository,
    LocalBlobStore,
    LocalProjectRepository,
    ProjectRepository,
    SupabaseProjectRepository,
)

logger = logging.getLogger(__name__)


def build_repository(config: EngineConfig) -> ProjectRepository:
    """Local JSON repository, fronted by the durable store when one is configured."""
    cache = LocalProjectRepository(config.cache_dir)
    if not config.has_durable_store():
        logger.info(f"No durable store configured; using local cache at {config.cache_dir}")
        return cache

    primary = SupabaseProjectRepository(
        url=config.get_supabase_url(),
        key=config.get_supabase_key(),
        table=config.supabase_table,
        timeout=config.request_timeout,
    )
    return FallbackProjectRepository(primary, cache)


def build_pipeline(
    config: EngineConfig | None = None,
    profiles: ProfileProvider | None = None,
    script_generator: ScriptGenerator | None = None,
    speech: SpeechSynthesizer | None = None,
    images: ImageGenerator | None = None,
) -> Pipeline:
    """Assemble a pipeline with the built-in adapters.

    Generation collaborators (script, speech, images) have no built-in
    implementation and must be supplied by the caller; stages that need a
    missing one fail with a configuration error when reached.
    """
    config = config or EngineConfig()
    collaborators = Collaborators(
        profiles=profiles or StaticProfileProvider(),
        blobs=LocalBlobStore(config.blob_dir),
        script_generator=script_generator,
        speech=speech,
        images=images,
        transcripts=ApifyTranscriptExtractor(timeout=config.request_timeout),
        compressor=FfmpegAudioCompressor(),
        renderer=FfmpegVideoRenderer(),
    )
    return Pipeline(build_repository(config), collaborators, config)


__all__ = [
    "ApifyTranscriptExtractor",
    "FfmpegAudioCompressor",
    "FfmpegVideoRenderer",
    "JsonProfileProvider",
    "StaticProfileProvider",
    "build_pipeline",
    "build_repository",
]
