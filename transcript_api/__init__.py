"""YouTube transcript API: caption extraction through yt-dlp."""

__version__ = "1.0.0"
