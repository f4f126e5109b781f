"""
Shared utility functions for the YouTube transcript API.

This module provides the URL and origin checks used by the HTTP layer and
the log sanitizer used wherever user input is logged.
"""

import re


# Syntactic check only: optional scheme, optional www, a YouTube host and
# a non-empty path
YOUTUBE_URL_PATTERN_COMPILED = re.compile(
    r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+"
)

# Video ID patterns - handles watch, short, embed and shorts URLs including
# those with additional query parameters (e.g., ?t=10, &list=xyz)
YOUTUBE_ID_PATTERN_COMPILED = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)([a-zA-Z0-9_-]{11})"
)


def is_valid_youtube_url(url: str) -> bool:
    """
    Check that a string looks like a YouTube URL.

    Accepts ``youtube.com`` and ``youtu.be`` hosts with or without scheme
    and ``www.`` prefix, as long as a path follows the host.

    Examples:
        >>> is_valid_youtube_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        True
        >>> is_valid_youtube_url("youtu.be/dQw4w9WgXcQ")
        True
        >>> is_valid_youtube_url("https://youtube.com/")
        False
        >>> is_valid_youtube_url("not a url")
        False
    """
    return YOUTUBE_URL_PATTERN_COMPILED.match(url) is not None


def extract_video_id(url: str) -> str | None:
    """
    Extract the 11-character video ID from a YouTube URL.

    Only used to enrich log events; the transcript pipeline passes the URL
    to yt-dlp untouched.

    Examples:
        >>> extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://www.youtube.com/@channel") is None
        True
    """
    match = YOUTUBE_ID_PATTERN_COMPILED.search(url)
    if match:
        return match.group(1)
    return None


def sanitize_for_log(input_str: str) -> str:
    """
    Sanitize user input for logging to prevent log injection attacks.

    Replaces newlines, carriage returns, and tabs with their escaped
    representations.
    """
    return input_str.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


def is_origin_allowed(
    origin: str | None, allowed_origins: list[str], origin_regex: str | None = None
) -> bool:
    """
    Decide whether a cross-origin caller may use the API.

    Requests without an Origin header (curl, server-to-server, mobile apps)
    are always allowed. Otherwise the origin must be in the explicit
    allow-list or fully match the wildcard pattern.
    """
    if not origin:
        return True
    if origin in allowed_origins:
        return True
    if origin_regex and re.fullmatch(origin_regex, origin):
        return True
    return False
