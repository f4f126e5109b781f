"""Pytest fixtures for transcript extraction tests."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from transcript_api.config import Settings
from transcript_api.main import app
from transcript_api.runner import ToolResult
from transcript_api.service import TranscriptExtractor, get_extractor


SAMPLE_VTT = """WEBVTT

00:00:00.000 --> 00:00:02.000
Hello <c>world</c>

00:00:02.000 --> 00:00:04.000
how are you
"""

AUTO_VTT = """WEBVTT
Kind: captions
Language: en

00:00:00.000 --> 00:00:02.500 align:start position:0%
Never<00:00:00.400><c> gonna</c><00:00:00.800><c> give</c>

00:00:02.500 --> 00:00:05.000 align:start position:0%
you up
"""

MANUAL_VTT = """WEBVTT

1
00:00:00.000 --> 00:00:03.500
We're no strangers to love

2
00:00:03.500 --> 00:00:07.000
You know the rules and so do I
"""


class FakeYtDlp:
    """
    Stand-in for run_tool that behaves like yt-dlp on disk.

    For each stage ("auto" / "manual") it can write a caption file named
    ``<output base>.en.vtt`` and then raise a configured error, so files
    left behind by failed runs can be exercised too.
    """

    def __init__(self, captions=None, errors=None, delay: float = 0):
        self.captions = captions or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: list[list[str]] = []

    @staticmethod
    def stage_of(argv) -> str:
        return "auto" if "--write-auto-subs" in argv else "manual"

    async def __call__(self, argv, timeout, max_output_bytes):
        self.calls.append(list(argv))
        stage = self.stage_of(argv)
        output_base = argv[argv.index("--output") + 1]

        if self.delay:
            await asyncio.sleep(self.delay)

        content = self.captions.get(stage)
        if callable(content):
            content = content(output_base)
        if content is not None:
            Path(f"{output_base}.en.vtt").write_text(content, encoding="utf-8")

        if stage in self.errors:
            raise self.errors[stage]
        return ToolResult(returncode=0, stdout=b"", stderr=b"")

    @property
    def stages(self) -> list[str]:
        return [self.stage_of(argv) for argv in self.calls]


@pytest.fixture
def work_dir(tmp_path):
    """Work directory shared by all requests of one extractor."""
    directory = tmp_path / "work"
    directory.mkdir()
    return directory


@pytest.fixture
def ytdlp_installed():
    """Pretend yt-dlp is on PATH."""
    with patch("transcript_api.service.shutil.which", return_value="/usr/local/bin/yt-dlp") as mock_which:
        yield mock_which


@pytest.fixture
def make_extractor(work_dir, ytdlp_installed):
    """Build a TranscriptExtractor wired to a FakeYtDlp."""

    def factory(fake: FakeYtDlp, **settings_overrides) -> TranscriptExtractor:
        config = Settings(**settings_overrides)
        return TranscriptExtractor(config=config, runner=fake, work_dir=work_dir)

    return factory


@pytest.fixture
def fake_ytdlp():
    """A FakeYtDlp producing auto captions only; tests may reconfigure it."""
    return FakeYtDlp(captions={"auto": AUTO_VTT})


@pytest.fixture
def client(make_extractor, fake_ytdlp):
    """FastAPI TestClient whose extractor runs the fake yt-dlp."""
    extractor = make_extractor(fake_ytdlp)
    app.dependency_overrides[get_extractor] = lambda: extractor
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
