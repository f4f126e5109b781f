"""Exceptions raised by the transcript extraction pipeline."""


class TranscriptError(Exception):
    """Base class for transcript extraction failures."""


class ToolUnavailableError(TranscriptError):
    """The yt-dlp executable cannot be found on this host."""


class TranscriptNotFoundError(TranscriptError):
    """Neither auto-generated nor manual captions could be obtained."""


class ExtractionTimeoutError(TranscriptError):
    """yt-dlp was killed for exceeding its time or output limit."""


class ToolExecutionError(TranscriptError):
    """
    yt-dlp could not be started or exited with a non-zero status.

    The extractor treats this as "this stage produced nothing" rather than
    a failure of the request.
    """

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
