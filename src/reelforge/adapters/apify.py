"""Transcript extraction through an Apify actor.

The actor runs asynchronously: a run is started, polled at a fixed interval
for a bounded number of attempts until it reaches a terminal state, and its
dataset is then downloaded.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from reelforge.errors import CollaboratorError
from reelforge.ports import ExtractedTranscript, TranscriptExtractor

logger = logging.getLogger(__name__)

APIFY_BASE_URL = "https://api.apify.com/v2"
DEFAULT_ACTOR_ID = "starvibe~youtube-video-transcript"
TERMINAL_STATES = {"SUCCEEDED", "FAILED", "ABORTED", "TIMED-OUT"}


class ApifyTranscriptExtractor(TranscriptExtractor):
    """Extract a YouTube video's transcript with an Apify actor."""

    def __init__(
        self,
        actor_id: str = DEFAULT_ACTOR_ID,
        base_url: str = APIFY_BASE_URL,
        language: str = "pt",
        poll_interval: float = 3.0,
        max_attempts: int = 20,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.actor_id = actor_id
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._session = session or requests.Session()
        self._sleep = sleep

    def _call(self, method: str, url: str, token: str, **kwargs: Any) -> Any:
        try:
            response = self._session.request(
                method, url, params={"token": token}, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise CollaboratorError(f"Apify request failed: {e}") from e
        if not response.ok:
            raise CollaboratorError(
                f"Apify returned {response.status_code} for {method} {url.split('?')[0]}: "
                f"{response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise CollaboratorError(f"Apify returned invalid JSON: {e}") from e

    def _start_run(self, video_id: str, token: str) -> dict[str, Any]:
        body = {
            "youtube_url": f"https://www.youtube.com/watch?v={video_id}",
            "language": self.language,
            "include_transcript_text": True,
        }
        data = self._call("POST", f"{self.base_url}/acts/{self.actor_id}/runs", token, json=body)
        return data["data"]

    def _wait_for_run(self, run_id: str, token: str) -> dict[str, Any]:
        url = f"{self.base_url}/acts/{self.actor_id}/runs/{run_id}"
        for attempt in range(1, self.max_attempts + 1):
            self._sleep(self.poll_interval)
            try:
                run = self._call("GET", url, token)["data"]
            except CollaboratorError as e:
                logger.warning(f"Apify polling error (attempt {attempt}/{self.max_attempts}): {e}")
                continue
            status = run.get("status")
            if status in TERMINAL_STATES:
                return run
            logger.info(f"Apify run {run_id}: {status} (attempt {attempt}/{self.max_attempts})")

        waited = self.poll_interval * self.max_attempts
        raise CollaboratorError(f"Apify run {run_id} did not finish within {waited:.0f}s")

    @staticmethod
    def _parse_item(item: dict[str, Any]) -> ExtractedTranscript:
        transcript = item.get("transcript_text") or ""
        if not transcript and isinstance(item.get("transcript"), list):
            transcript = " ".join(
                str(seg.get("text", "")).strip() for seg in item["transcript"] if isinstance(seg, dict)
            )
        if not transcript and not item.get("title"):
            raise CollaboratorError("Apify returned an unknown or empty dataset item")
        metadata = {
            "title": item.get("title"),
            "description": item.get("description"),
            "view_count": item.get("viewCount"),
            "date": item.get("date"),
            "channel_name": item.get("channelName"),
            "duration": item.get("duration"),
        }
        return ExtractedTranscript(transcript=transcript.strip(), metadata=metadata)

    def extract(self, source_id: str, token: str) -> ExtractedTranscript:
        start_time = time.perf_counter()
        run = self._start_run(source_id, token)
        logger.info(f"Apify run {run['id']} started for video {source_id}")

        finished = self._wait_for_run(run["id"], token)
        if finished.get("status") != "SUCCEEDED":
            raise CollaboratorError(f"Apify run failed with status {finished.get('status')}")

        items = self._call("GET", f"{self.base_url}/datasets/{finished['defaultDatasetId']}/items", token)
        if not items:
            raise CollaboratorError(
                "No transcript found; the video may not have captions enabled"
            )

        result = self._parse_item(items[0])
        elapsed = time.perf_counter() - start_time
        logger.info(f"Apify transcript fetched in {elapsed:.1f}s ({len(result.transcript)} chars)")
        return result
