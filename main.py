"""
Entry point for the YouTube transcript API.

Run this file directly to start the FastAPI server:
    python main.py
    python -m main

Or use uvicorn directly:
    uvicorn transcript_api.main:app --host 0.0.0.0 --port 3001
"""

import uvicorn

from transcript_api.config import settings


def main() -> None:
    """
    Start the uvicorn server.

    Server configuration can be overridden via environment variables:
    - HOST: Server host (default: 0.0.0.0)
    - PORT: Server port (default: 3001)
    - YTDLP_TIMEOUT_SECONDS: Wall-clock limit per yt-dlp run (default: 30)
    - YTDLP_TEMP_DIR: Work directory for caption files (default: private temp dir)
    """
    print("=" * 60)
    print("YouTube Transcript API")
    print("=" * 60)
    print(f"Starting server on http://{settings.host}:{settings.port}")
    print(f"yt-dlp binary: {settings.ytdlp_binary}")
    print(f"  - Timeout: {settings.ytdlp_timeout_seconds}s")
    print(f"  - Work dir: {settings.ytdlp_temp_dir or '(private temp dir)'}")
    print("=" * 60)

    uvicorn.run(
        "transcript_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
