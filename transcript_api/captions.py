"""
WebVTT helpers: locating the file yt-dlp wrote and flattening it to prose.

yt-dlp names its subtitle output ``<output base>.<lang>.vtt`` where the
language segment (``en``, ``en-orig``, ``en-US``...) is chosen by the tool,
so files are matched by prefix and extension only.
"""

import os
import re


SUBTITLE_EXTENSION = ".vtt"

# Cue timing line: HH:MM:SS.mmm --> HH:MM:SS.mmm, hours optional for short
# videos; trailing cue settings (align:start position:0%) are ignored
TIMESTAMP_LINE_PATTERN = re.compile(
    r"^(?:\d+:)?\d{2}:\d{2}\.\d{3}\s+-->\s+(?:\d+:)?\d{2}:\d{2}\.\d{3}"
)
TIMESTAMP_RANGE_PATTERN = re.compile(
    r"(?:\d+:)?\d{2}:\d{2}\.\d{3}\s+-->\s+(?:\d+:)?\d{2}:\d{2}\.\d{3}"
)
CUE_INDEX_PATTERN = re.compile(r"^\d+$")

# Inline markup: <c>, </c>, <v Speaker>, <00:00:02.500> karaoke timestamps
TAG_REMOVAL_PATTERN = re.compile(r"<[^>]+?>")

HEADER_PREFIXES = ("WEBVTT", "Kind:", "Language:")


def _is_structural(line: str) -> bool:
    return (
        not line
        or line.startswith(HEADER_PREFIXES)
        or TIMESTAMP_LINE_PATTERN.match(line) is not None
        or CUE_INDEX_PATTERN.match(line) is not None
    )


def clean_vtt(vtt_content: str) -> str:
    """
    Convert raw WebVTT content into a single line of spoken text.

    Header, metadata, cue index and cue timing lines are dropped, inline
    tags are stripped from the remaining lines and the survivors are joined
    with single spaces in cue order. Repeated cue text (common in
    auto-generated captions with rolling windows) is kept as-is.

    Args:
        vtt_content: Raw VTT file content as string

    Returns:
        Plain transcript text, or an empty string if nothing is spoken

    Example:
        >>> clean_vtt("WEBVTT\\n\\n00:00:00.000 --> 00:00:02.000\\nHello <c>world</c>\\n")
        'Hello world'
    """
    if not vtt_content:
        return ""

    transcript_lines = []
    for raw_line in vtt_content.splitlines():
        line = raw_line.strip()
        if _is_structural(line):
            continue

        cleaned = TAG_REMOVAL_PATTERN.sub("", line)
        cleaned = TIMESTAMP_RANGE_PATTERN.sub("", cleaned).strip()
        if cleaned:
            transcript_lines.append(cleaned)

    return " ".join(transcript_lines)


def find_subtitle_file(
    directory: str | os.PathLike, prefix: str, extension: str = SUBTITLE_EXTENSION
) -> str | None:
    """
    Find the subtitle file written for an output prefix.

    Args:
        directory: Directory yt-dlp wrote into
        prefix: File name prefix passed to yt-dlp as output base
        extension: Expected subtitle file extension

    Returns:
        The first matching file name (not path), or None when yt-dlp
        produced no captions
    """
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return None

    for name in names:
        if name.startswith(prefix) and name.endswith(extension):
            return name
    return None
