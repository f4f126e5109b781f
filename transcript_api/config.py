"""
Configuration module for the YouTube transcript API.

Uses pydantic-settings to load configuration from environment variables
(or a .env file), so the yt-dlp invocation limits and the CORS allow-list
can be tuned without code changes.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Field names map directly onto environment variables (case-insensitive),
    and the server fields additionally accept their short aliases.

    Environment Variables:
        HOST: Server host (default: 0.0.0.0)
        PORT: Server port (default: 3001)
        LOG_LEVEL: Logging level (default: info)
        YTDLP_BINARY: Name or path of the yt-dlp executable (default: yt-dlp)
        YTDLP_TEMP_DIR: Directory for temporary subtitle files. When unset a
            private directory is created per process and removed at shutdown.
        YTDLP_TIMEOUT_SECONDS: Wall-clock limit for one yt-dlp run (default: 30)
        YTDLP_MAX_OUTPUT_BYTES: Combined stdout/stderr cap for one yt-dlp run
            (default: 10 MiB). Exceeding it kills the process.
        YTDLP_SUBTITLE_LANG: Subtitle language requested from yt-dlp (default: en)
        YTDLP_SUBTITLE_FORMAT: Subtitle format requested from yt-dlp (default: vtt)
        CORS_ALLOWED_ORIGINS: JSON list of exact origins allowed to call the API
        CORS_ALLOWED_ORIGIN_REGEX: Pattern for wildcard subdomain origins
        ENABLE_SECURITY_HEADERS: Enable security headers middleware (default: true)
    """

    # ========== Server Configuration ==========

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, alias="PORT")
    log_level: str = Field(default="info", alias="LOG_LEVEL")

    # ========== yt-dlp Invocation ==========

    ytdlp_binary: str = "yt-dlp"

    # Working directory for caption files; every request scopes its files
    # with a unique prefix inside it
    ytdlp_temp_dir: str | None = None

    ytdlp_timeout_seconds: float = 30.0
    ytdlp_max_output_bytes: int = 10 * 1024 * 1024

    ytdlp_subtitle_lang: str = "en"
    ytdlp_subtitle_format: str = "vtt"

    # ========== Security Settings ==========

    cors_allowed_origins: list[str] = [
        "https://claude.site",
        "https://claude.ai",
        "http://localhost:3000",  # Local development
        "http://localhost:5173",  # Vite default
    ]
    # Matched against the whole origin (e.g. https://foo.claude.site)
    cors_allowed_origin_regex: str | None = r"https://.+\.claude\.site"

    enable_security_headers: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,  # Allow using field names or aliases
    )


# Global settings instance - loaded at startup with environment variables
settings = Settings()
