"""Tests for the built-in collaborator adapters."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from reelforge.adapters import build_pipeline, build_repository
from reelforge.adapters.apify import ApifyTranscriptExtractor
from reelforge.adapters.ffmpeg import FfmpegAudioCompressor, FfmpegVideoRenderer
from reelforge.adapters.profiles import JsonProfileProvider, StaticProfileProvider
from reelforge.config import EngineConfig
from reelforge.errors import CollaboratorError, ConfigurationError
from reelforge.models.schema import ChannelProfile, VideoFormat
from reelforge.ports import RenderRequest
from reelforge.store import FallbackProjectRepository, LocalProjectRepository


def _json_response(payload, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


class TestApifyTranscriptExtractor:
    """Tests for the Apify extractor with mocked HTTP."""

    @pytest.fixture
    def session(self) -> MagicMock:
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def sleeps(self) -> list[float]:
        return []

    @pytest.fixture
    def extractor(self, session, sleeps) -> ApifyTranscriptExtractor:
        return ApifyTranscriptExtractor(session=session, sleep=sleeps.append, max_attempts=3)

    def test_start_poll_fetch(self, extractor, session, sleeps) -> None:
        session.request.side_effect = [
            _json_response({"data": {"id": "run1"}}),
            _json_response({"data": {"status": "RUNNING"}}),
            _json_response({"data": {"status": "SUCCEEDED", "defaultDatasetId": "ds1"}}),
            _json_response(
                [
                    {
                        "transcript_text": " Hello from the deep. ",
                        "title": "Deep sea",
                        "viewCount": 5000,
                        "channelName": "Ocean",
                        "duration": "10:02",
                    }
                ]
            ),
        ]

        result = extractor.extract("vid123", "tok")

        assert result.transcript == "Hello from the deep."
        assert result.metadata["title"] == "Deep sea"
        assert result.metadata["view_count"] == 5000
        assert result.metadata["channel_name"] == "Ocean"
        assert sleeps == [3.0, 3.0]

        calls = session.request.call_args_list
        assert calls[0].args == ("POST", "https://api.apify.com/v2/acts/starvibe~youtube-video-transcript/runs")
        assert calls[0].kwargs["json"]["youtube_url"] == "https://www.youtube.com/watch?v=vid123"
        assert calls[0].kwargs["params"] == {"token": "tok"}
        assert calls[3].args[1].endswith("/datasets/ds1/items")

    def test_segment_list_transcript(self, extractor, session) -> None:
        session.request.side_effect = [
            _json_response({"data": {"id": "run1"}}),
            _json_response({"data": {"status": "SUCCEEDED", "defaultDatasetId": "ds1"}}),
            _json_response([{"transcript": [{"text": "Hello"}, {"text": "world"}], "title": "T"}]),
        ]
        assert extractor.extract("vid", "tok").transcript == "Hello world"

    def test_failed_run(self, extractor, session) -> None:
        session.request.side_effect = [
            _json_response({"data": {"id": "run1"}}),
            _json_response({"data": {"status": "FAILED"}}),
        ]
        with pytest.raises(CollaboratorError, match="FAILED"):
            extractor.extract("vid", "tok")

    def test_polling_is_bounded(self, extractor, session, sleeps) -> None:
        session.request.side_effect = [_json_response({"data": {"id": "run1"}})] + [
            _json_response({"data": {"status": "RUNNING"}}) for _ in range(3)
        ]
        with pytest.raises(CollaboratorError, match="did not finish"):
            extractor.extract("vid", "tok")
        assert len(sleeps) == 3

    def test_empty_dataset(self, extractor, session) -> None:
        session.request.side_effect = [
            _json_response({"data": {"id": "run1"}}),
            _json_response({"data": {"status": "SUCCEEDED", "defaultDatasetId": "ds1"}}),
            _json_response([]),
        ]
        with pytest.raises(CollaboratorError, match="captions"):
            extractor.extract("vid", "tok")

    def test_start_http_error(self, extractor, session) -> None:
        session.request.return_value = _json_response({"error": "bad token"}, status=401)
        with pytest.raises(CollaboratorError, match="401"):
            extractor.extract("vid", "tok")

    def test_connection_error(self, extractor, session) -> None:
        session.request.side_effect = requests.ConnectionError("offline")
        with pytest.raises(CollaboratorError, match="offline"):
            extractor.extract("vid", "tok")


def _fake_ffmpeg(output: bytes = b"encoded", returncode: int = 0):
    """A subprocess.run stand-in that writes ``output`` to the command's last argument."""

    def run(cmd, capture_output, text, timeout, cwd=None):
        if returncode == 0:
            target = Path(cmd[-1])
            if cwd is not None:
                target = Path(cwd) / target
            target.write_bytes(output)
        return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr="codec error")

    return run


class TestFfmpegAudioCompressor:
    """Tests for MP3 compression via ffmpeg."""

    def test_command(self, temp_dir: Path) -> None:
        cmd = FfmpegAudioCompressor().build_command(temp_dir / "in.wav", temp_dir / "out.mp3", 128)
        assert cmd == [
            "ffmpeg", "-y", "-i", str(temp_dir / "in.wav"),
            "-codec:a", "libmp3lame", "-b:a", "128k", "-ar", "44100", "-ac", "1",
            str(temp_dir / "out.mp3"),
        ]

    def test_compress(self) -> None:
        with patch("reelforge.adapters.ffmpeg.subprocess.run", side_effect=_fake_ffmpeg(b"mp3data")):
            assert FfmpegAudioCompressor().compress(b"RIFF....", 128) == b"mp3data"

    def test_missing_binary(self) -> None:
        with patch("reelforge.adapters.ffmpeg.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(CollaboratorError, match="ffmpeg not found"):
                FfmpegAudioCompressor().compress(b"RIFF", 128)

    def test_timeout(self) -> None:
        with patch(
            "reelforge.adapters.ffmpeg.subprocess.run",
            side_effect=subprocess.TimeoutExpired("ffmpeg", 120),
        ):
            with pytest.raises(CollaboratorError, match="timed out"):
                FfmpegAudioCompressor().compress(b"RIFF", 128)

    def test_nonzero_exit(self) -> None:
        with patch("reelforge.adapters.ffmpeg.subprocess.run", side_effect=_fake_ffmpeg(returncode=1)):
            with pytest.raises(CollaboratorError, match="codec error"):
                FfmpegAudioCompressor().compress(b"RIFF", 128)


class TestFfmpegVideoRenderer:
    """Tests for slideshow rendering via ffmpeg."""

    @pytest.fixture
    def request_(self) -> RenderRequest:
        return RenderRequest(
            audio=b"mp3",
            audio_format="mp3",
            subtitles="[Script Info]\n",
            images=[b"png1", b"png2"],
            durations=[7.5, 22.5],
            resolution=(1080, 1920),
        )

    def test_concat_list(self, temp_dir: Path) -> None:
        path = temp_dir / "list.txt"
        images = [temp_dir / "image_000.png", temp_dir / "image_001.png"]
        FfmpegVideoRenderer.write_concat_list(path, images, [7.5, 22.5])

        assert path.read_text().splitlines() == [
            "ffconcat version 1.0",
            "file 'image_000.png'",
            "duration 7.500",
            "file 'image_001.png'",
            "duration 22.500",
            "file 'image_001.png'",
        ]

    def test_command_filters(self, temp_dir: Path) -> None:
        cmd = FfmpegVideoRenderer().build_command(
            temp_dir / "images.txt", temp_dir / "a.mp3", temp_dir / "captions.ass",
            temp_dir / "video.mp4", (1080, 1920),
        )
        vf = cmd[cmd.index("-vf") + 1]
        assert "scale=1080:1920" in vf
        assert "crop=1080:1920" in vf
        assert vf.endswith("ass=captions.ass")
        assert "-shortest" in cmd
        assert cmd[-1] == "video.mp4"

    def test_render(self, request_: RenderRequest) -> None:
        with patch("reelforge.adapters.ffmpeg.subprocess.run", side_effect=_fake_ffmpeg(b"mp4")) as run:
            assert FfmpegVideoRenderer().render(request_) == b"mp4"
        assert run.call_args.kwargs["cwd"] is not None

    def test_mismatched_lengths(self, request_: RenderRequest) -> None:
        request_.durations = [1.0]
        with pytest.raises(CollaboratorError, match="mismatch"):
            FfmpegVideoRenderer().render(request_)


class TestProfileProviders:
    """Tests for channel profile providers."""

    def test_static(self) -> None:
        provider = StaticProfileProvider([ChannelProfile(id="ocean")])
        assert provider.get_profile("ocean").id == "ocean"
        assert provider.get_profile("space") is None

    def test_json_list(self, temp_dir: Path) -> None:
        path = temp_dir / "profiles.json"
        path.write_text(json.dumps([{"id": "ocean", "voice_id": "Kore", "format": "LONG_FORM"}]))

        profile = JsonProfileProvider(path).get_profile("ocean")
        assert profile.voice_id == "Kore"
        assert profile.format is VideoFormat.LONG_FORM

    def test_json_wrapped(self, temp_dir: Path) -> None:
        path = temp_dir / "profiles.json"
        path.write_text(json.dumps({"profiles": [{"id": "ocean"}]}))
        assert JsonProfileProvider(path).get_profile("ocean") is not None

    def test_missing_file(self, temp_dir: Path) -> None:
        assert JsonProfileProvider(temp_dir / "nope.json").get_profile("ocean") is None

    def test_invalid_profile(self, temp_dir: Path) -> None:
        path = temp_dir / "profiles.json"
        path.write_text(json.dumps([{"id": "ocean", "subtitle_style": {"primary_color": "red"}}]))
        with pytest.raises(ConfigurationError, match="Invalid profile"):
            JsonProfileProvider(path).get_profile("ocean")


class TestFactories:
    """Tests for repository and pipeline assembly."""

    def test_local_only_without_durable_store(self, temp_dir: Path, monkeypatch) -> None:
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        repo = build_repository(EngineConfig(data_dir=str(temp_dir)))
        assert isinstance(repo, LocalProjectRepository)

    def test_fallback_with_durable_store(self, temp_dir: Path) -> None:
        config = EngineConfig(data_dir=str(temp_dir), supabase_url="https://x.supabase.co", supabase_key="k")
        repo = build_repository(config)
        assert isinstance(repo, FallbackProjectRepository)

    def test_build_pipeline(self, temp_dir: Path, monkeypatch) -> None:
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        pipeline = build_pipeline(EngineConfig(data_dir=str(temp_dir)))

        assert pipeline.collaborators.script_generator is None
        assert isinstance(pipeline.collaborators.compressor, FfmpegAudioCompressor)
        assert (temp_dir / "blobs").is_dir()
