"""
Request-scoped temporary files.

Every transcript request gets its own file name prefix inside the shared
work directory. yt-dlp writes its caption files under that prefix, and the
scope deletes everything carrying it once the request is over, whichever
way it ended. Concurrent requests never touch each other's files because
prefixes are unique; no locking is involved.
"""

import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


ARTIFACT_PREFIX = "temp_"


def _remove_matching(directory: Path, prefix: str) -> int:
    """Delete every entry of directory starting with prefix; return count removed."""
    try:
        names = os.listdir(directory)
    except OSError as e:
        logger.error(f"Error listing {directory} for cleanup of {prefix}: {e}")
        return 0

    removed = 0
    for name in names:
        if not name.startswith(prefix):
            continue
        try:
            (directory / name).unlink()
            removed += 1
        except OSError as e:
            logger.error(f"Error removing temp file {name}: {e}")
    return removed


@dataclass
class ArtifactScope:
    """
    File name scope for one transcript request.

    Attributes:
        directory: Work directory the external tool writes into
        request_id: Unique token for this request
    """

    directory: Path
    request_id: str
    _cleaned: bool = field(default=False, init=False, repr=False)

    @classmethod
    def new(cls, directory: str | os.PathLike) -> "ArtifactScope":
        """Create a scope with a freshly generated request id."""
        return cls(directory=Path(directory), request_id=uuid.uuid4().hex)

    @property
    def prefix(self) -> str:
        return f"{ARTIFACT_PREFIX}{self.request_id}"

    def output_base(self, stage: str) -> Path:
        """
        Output base path handed to yt-dlp for one extraction stage.

        Each stage gets its own sub-prefix so a file left by an earlier
        stage is never picked up as a later stage's result.
        """
        return self.directory / f"{self.prefix}_{stage}"

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    async def cleanup(self) -> int:
        """
        Remove every file belonging to this scope.

        Runs at most once; later calls return 0. Individual deletion errors
        are logged and do not propagate.

        Returns:
            Number of files removed
        """
        if self._cleaned:
            return 0
        self._cleaned = True

        removed = await run_in_threadpool(_remove_matching, self.directory, self.prefix)
        if removed:
            logger.debug(f"Removed {removed} temp file(s) for {self.prefix}")
        return removed

    async def __aenter__(self) -> "ArtifactScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()
