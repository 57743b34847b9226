"""Channel profile providers backed by in-memory data or a JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError as ModelValidationError

from reelforge.errors import ConfigurationError
from reelforge.models.schema import ChannelProfile
from reelforge.ports import ProfileProvider

logger = logging.getLogger(__name__)


class StaticProfileProvider(ProfileProvider):
    """Profiles held in memory, keyed by channel id."""

    def __init__(self, profiles: list[ChannelProfile] | None = None) -> None:
        self._profiles = {p.id: p for p in profiles or []}

    def add(self, profile: ChannelProfile) -> None:
        self._profiles[profile.id] = profile

    def get_profile(self, channel_id: str) -> ChannelProfile | None:
        return self._profiles.get(channel_id)


class JsonProfileProvider(ProfileProvider):
    """Profiles read from a JSON file holding a list of profile objects.

    The file is re-read on every lookup so edits apply to the next run.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> list[ChannelProfile]:
        if not self.path.exists():
            logger.warning(f"Profile file not found: {self.path}")
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read profile file {self.path}: {e}") from e
        if isinstance(raw, dict):
            raw = raw.get("profiles", [raw])
        try:
            return [ChannelProfile.model_validate(item) for item in raw]
        except ModelValidationError as e:
            raise ConfigurationError(f"Invalid profile in {self.path}: {e}") from e

    def get_profile(self, channel_id: str) -> ChannelProfile | None:
        for profile in self._load():
            if profile.id == channel_id:
                return profile
        return None
