"""
Transcript extraction service driving the yt-dlp command-line tool.

Extraction runs in two stages against the same request-scoped file prefix:

    1. Auto-generated captions (``--write-auto-subs``), which exist for far
       more videos than uploaded ones.
    2. Manually authored captions (``--write-subs``) as the fallback.

A stage that exits with an error or writes no usable caption file simply
hands over to the next stage; only a run killed for exceeding its limits
aborts the request. Whatever happens, the request's temporary files are
removed before ``extract`` returns.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from transcript_api.artifacts import ArtifactScope
from transcript_api.captions import SUBTITLE_EXTENSION, clean_vtt, find_subtitle_file
from transcript_api.config import Settings
from transcript_api.errors import (
    ToolExecutionError,
    ToolUnavailableError,
    TranscriptNotFoundError,
)
from transcript_api.runner import ToolRunner, run_tool
from transcript_api.utils import extract_video_id, sanitize_for_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionStage:
    """
    One yt-dlp invocation strategy.

    Attributes:
        name: Stage label, also used in the output file name
        write_flag: yt-dlp flag selecting the caption kind
    """

    name: str
    write_flag: str


AUTO_CAPTIONS = ExtractionStage(name="auto", write_flag="--write-auto-subs")
MANUAL_CAPTIONS = ExtractionStage(name="manual", write_flag="--write-subs")

STAGES: tuple[ExtractionStage, ...] = (AUTO_CAPTIONS, MANUAL_CAPTIONS)


@dataclass
class TranscriptResult:
    """
    A cleaned transcript.

    Attributes:
        text: Plain spoken text, cues joined by single spaces
        source: Name of the stage that produced it ("auto" or "manual")
        request_id: Identifier of the extraction call
    """

    text: str
    source: str
    request_id: str

    @property
    def length(self) -> int:
        return len(self.text)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


class TranscriptExtractor:
    """
    Fetches YouTube captions through yt-dlp and returns them as plain text.

    The work directory is shared by all requests handled by this instance;
    isolation comes from the unique per-request prefix of ArtifactScope.
    """

    def __init__(
        self,
        config: Settings | None = None,
        runner: ToolRunner | None = None,
        work_dir: str | Path | None = None,
    ):
        """
        Initialize the extractor.

        Args:
            config: Settings instance. Uses global defaults if None.
            runner: Coroutine used to execute yt-dlp (defaults to run_tool)
            work_dir: Directory for caption files. Falls back to
                config.ytdlp_temp_dir, then to a private directory created
                for this instance and removed by close().
        """
        self.config = config or Settings()
        self._runner = runner or run_tool
        self._owns_work_dir = False

        directory = work_dir or self.config.ytdlp_temp_dir
        if directory:
            self.work_dir = Path(directory)
            self.work_dir.mkdir(parents=True, exist_ok=True)
        else:
            self.work_dir = Path(tempfile.mkdtemp(prefix="transcript-api-"))
            self._owns_work_dir = True

    def close(self) -> None:
        """Remove the private work directory, if this instance created one."""
        if self._owns_work_dir:
            shutil.rmtree(self.work_dir, ignore_errors=True)
            self._owns_work_dir = False

    def ensure_tool_available(self) -> str:
        """
        Resolve the yt-dlp executable.

        Returns:
            Absolute path of the executable

        Raises:
            ToolUnavailableError: If it is not installed or not on PATH
        """
        path = shutil.which(self.config.ytdlp_binary)
        if path is None:
            raise ToolUnavailableError(
                "yt-dlp is not installed on the server. "
                "Please install it using: pip install yt-dlp"
            )
        return path

    def build_command(
        self, binary: str, stage: ExtractionStage, output_base: Path, url: str
    ) -> list[str]:
        """
        Build the argument vector for one stage.

        The URL is passed after ``--`` so it can never be parsed as an option.
        """
        return [
            binary,
            "--quiet",
            "--skip-download",
            stage.write_flag,
            "--sub-lang",
            self.config.ytdlp_subtitle_lang,
            "--sub-format",
            self.config.ytdlp_subtitle_format,
            "--output",
            str(output_base),
            "--",
            url,
        ]

    async def _run_stage(
        self, binary: str, stage: ExtractionStage, scope: ArtifactScope, url: str
    ) -> str:
        """
        Run one stage and return its cleaned transcript ("" if it produced none).

        Raises:
            ExtractionTimeoutError: If yt-dlp had to be killed
        """
        output_base = scope.output_base(stage.name)
        argv = self.build_command(binary, stage, output_base, url)

        try:
            await self._runner(
                argv, self.config.ytdlp_timeout_seconds, self.config.ytdlp_max_output_bytes
            )
        except ToolExecutionError as e:
            logger.info(
                f"Stage '{stage.name}' failed for {scope.prefix}: {e}"
                + (f" ({sanitize_for_log(e.stderr)})" if e.stderr else "")
            )
            return ""

        filename = await run_in_threadpool(
            find_subtitle_file, scope.directory, output_base.name, SUBTITLE_EXTENSION
        )
        if filename is None:
            logger.info(f"Stage '{stage.name}' produced no subtitle file for {scope.prefix}")
            return ""

        try:
            vtt_content = await run_in_threadpool(_read_text, scope.directory / filename)
        except OSError as e:
            logger.warning(f"Could not read subtitle file {filename}: {e}")
            return ""

        transcript = clean_vtt(vtt_content)
        logger.info(
            f"Stage '{stage.name}' found {filename} ({len(transcript)} characters after cleaning)"
        )
        return transcript

    async def extract(self, url: str) -> TranscriptResult:
        """
        Extract the transcript of a YouTube video.

        Args:
            url: YouTube video URL (already validated by the caller)

        Returns:
            TranscriptResult with the cleaned text

        Raises:
            ToolUnavailableError: yt-dlp is not installed
            ExtractionTimeoutError: yt-dlp was killed on timeout or output cap
            TranscriptNotFoundError: Neither stage produced captions
        """
        binary = self.ensure_tool_available()
        video_id = extract_video_id(url) or "unknown"

        async with ArtifactScope.new(self.work_dir) as scope:
            logger.info(
                f"Extracting transcript for video {video_id} "
                f"({sanitize_for_log(url)}) as {scope.prefix}"
            )
            for stage in STAGES:
                transcript = await self._run_stage(binary, stage, scope, url)
                if transcript:
                    return TranscriptResult(
                        text=transcript, source=stage.name, request_id=scope.request_id
                    )

        raise TranscriptNotFoundError(
            "No transcript available for this video. "
            "The video may not have captions or subtitles."
        )


@lru_cache
def get_extractor() -> TranscriptExtractor:
    """
    Get the process-wide TranscriptExtractor instance.

    This function is used as a FastAPI dependency for dependency injection.
    """
    from transcript_api.config import settings

    return TranscriptExtractor(settings)
