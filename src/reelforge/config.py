"""Configuration and settings for Reelforge pipelines."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from reelforge.errors import ConfigurationError


class ProviderNames(BaseModel):
    """Names of the generation providers, recorded in stage outputs."""

    scripting: str = Field(default="GEMINI", description="Script/metadata generator")
    image: str = Field(default="GEMINI", description="Image generator")
    tts: str = Field(default="GEMINI", description="Speech synthesizer")


class ChunkingOptions(BaseModel):
    """Speaking-rate model used to size script chunks."""

    words_per_second: float = Field(default=2.5, gt=0, description="Assumed speaking rate")
    min_seconds: float = Field(default=9.0, ge=0, description="Lower bound of the chunk band")
    max_seconds: float = Field(default=18.0, gt=0, description="Upper bound of the chunk band")

    @model_validator(mode="after")
    def _check_band(self) -> ChunkingOptions:
        if self.min_seconds > self.max_seconds:
            raise ValueError("min_seconds must not exceed max_seconds")
        return self


class EngineConfig(BaseModel):
    """Configuration injected into the engine and every stage handler."""

    data_dir: str = Field(
        default="./reelforge_data", description="Root for the local cache and blob store"
    )
    supabase_url: str | None = Field(
        default=None, description="Durable store URL. Falls back to SUPABASE_URL env var."
    )
    supabase_key: str | None = Field(
        default=None, description="Durable store key. Falls back to SUPABASE_KEY env var."
    )
    supabase_table: str = Field(default="video_projects", description="Project table name")
    apify_token: str | None = Field(
        default=None, description="Transcript extractor token. Falls back to APIFY_TOKEN env var."
    )
    speech_sample_rate: int = Field(
        default=24000, gt=0, description="Sample rate of synthesized PCM in Hz"
    )
    audio_bitrate_kbps: int = Field(default=128, gt=0, description="Compressed audio bitrate")
    lease_ttl_seconds: float = Field(
        default=900.0, gt=0, description="How long a run may hold a project lease"
    )
    error_message_limit: int = Field(
        default=500, gt=0, description="Max characters of a cause kept in error messages"
    )
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    chunking: ChunkingOptions = Field(default_factory=ChunkingOptions)
    providers: ProviderNames = Field(default_factory=ProviderNames)

    @property
    def cache_dir(self) -> Path:
        return Path(self.data_dir) / "projects"

    @property
    def blob_dir(self) -> Path:
        return Path(self.data_dir) / "blobs"

    def get_supabase_url(self) -> str | None:
        """Get the durable store URL from config or environment."""
        if self.supabase_url is not None:
            return self.supabase_url
        return os.environ.get("SUPABASE_URL")

    def get_supabase_key(self) -> str | None:
        """Get the durable store key from config or environment."""
        if self.supabase_key is not None:
            return self.supabase_key
        return os.environ.get("SUPABASE_KEY")

    def has_durable_store(self) -> bool:
        return bool(self.get_supabase_url() and self.get_supabase_key())

    def get_apify_token(self) -> str | None:
        """Get the transcript extractor token from config or environment."""
        if self.apify_token is not None:
            return self.apify_token
        return os.environ.get("APIFY_TOKEN")

    def require_apify_token(self) -> str:
        """Return the transcript extractor token.

        Raises:
            ConfigurationError: If no token is configured.
        """
        token = self.get_apify_token()
        if not token:
            raise ConfigurationError(
                "Transcript extraction requires an Apify token.\n\n"
                "Set it via environment variable:\n"
                "   export APIFY_TOKEN='your_token_here'\n\n"
                "or pass apify_token to EngineConfig, or supply the reference transcript directly."
            )
        return token
