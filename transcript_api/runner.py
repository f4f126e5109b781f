"""
Asynchronous subprocess execution with time and output limits.

yt-dlp is started through an argument vector (no shell), so URLs and
other user-supplied values can never be interpreted as shell syntax. The
event loop stays free while the process runs; the process is killed when
it outlives the wall-clock limit, writes more than the output cap, or its
caller is cancelled.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from transcript_api.errors import ExtractionTimeoutError, ToolExecutionError

logger = logging.getLogger(__name__)


READ_CHUNK_SIZE = 64 * 1024


@dataclass
class ToolResult:
    """
    Outcome of a successful (zero exit status) tool run.

    Attributes:
        returncode: Process exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    returncode: int
    stdout: bytes
    stderr: bytes


# Signature shared by run_tool and test doubles injected into the extractor
ToolRunner = Callable[[Sequence[str], float, int], Awaitable[ToolResult]]


class _OutputLimitExceeded(Exception):
    pass


async def run_tool(argv: Sequence[str], timeout: float, max_output_bytes: int) -> ToolResult:
    """
    Run a command and capture its output.

    Args:
        argv: Program followed by its arguments
        timeout: Wall-clock limit in seconds
        max_output_bytes: Combined stdout + stderr limit in bytes

    Returns:
        ToolResult for a zero exit status

    Raises:
        ExtractionTimeoutError: The process was killed on timeout or for
            exceeding the output cap
        ToolExecutionError: The process could not be started or exited
            with a non-zero status
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ToolExecutionError(f"Failed to start {argv[0]}: {e}") from e

    stdout = bytearray()
    stderr = bytearray()

    async def drain(stream: asyncio.StreamReader, buffer: bytearray) -> None:
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            buffer.extend(chunk)
            if len(stdout) + len(stderr) > max_output_bytes:
                raise _OutputLimitExceeded()

    async def communicate() -> int:
        await asyncio.gather(drain(process.stdout, stdout), drain(process.stderr, stderr))
        return await process.wait()

    try:
        returncode = await asyncio.wait_for(communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(process)
        logger.warning(f"{argv[0]} killed after exceeding {timeout}s timeout")
        raise ExtractionTimeoutError(f"{argv[0]} did not finish within {timeout} seconds")
    except _OutputLimitExceeded:
        await _kill(process)
        logger.warning(f"{argv[0]} killed after exceeding {max_output_bytes} bytes of output")
        raise ExtractionTimeoutError(f"{argv[0]} exceeded the {max_output_bytes} byte output limit")
    except asyncio.CancelledError:
        # The caller's cleanup runs next; the child must be gone before it does
        _signal_kill(process)
        await asyncio.shield(process.wait())
        logger.warning(f"{argv[0]} killed after the request was cancelled")
        raise

    if returncode != 0:
        stderr_text = stderr.decode("utf-8", errors="replace").strip()
        raise ToolExecutionError(
            f"{argv[0]} exited with status {returncode}",
            returncode=returncode,
            stderr=stderr_text[-500:],
        )

    return ToolResult(returncode=returncode, stdout=bytes(stdout), stderr=bytes(stderr))


def _signal_kill(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.kill()


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Forcibly terminate a process and reap it."""
    _signal_kill(process)
    await process.wait()
