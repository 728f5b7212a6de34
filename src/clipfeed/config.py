"""Configuration settings for clipfeed."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLIPFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Media constraints
    max_file_size_bytes: int = 100 * 1024 * 1024  # 100MB
    max_duration_seconds: float = 60
    supported_formats: list[str] = ["video/mp4", "video/quicktime", "video/mov"]
    supported_extensions: list[str] = [".mp4", ".mov"]
    max_title_length: int = 100
    max_description_length: int = 200
    blocked_terms: list[str] = []

    # Deadlines
    probe_timeout_seconds: float = 15.0
    thumbnail_timeout_seconds: float = 30.0

    # Thumbnails
    thumbnail_max_dimension: int = 1280
    thumbnail_quality: int = 70  # JPEG quality, 1-95
    thumbnail_seek_seconds: float = 1.0

    # Feed
    feed_batch_size: int = 3
    swipe_threshold_px: float = 50

    # Tooling
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    # Paths
    data_dir: Path = Path("data")
    db_path: Path = Path("data/clipfeed.db")
    objects_dir: Path = Path("data/objects")
    public_base_url: str | None = None  # e.g. "http://localhost:8000/objects"

    # Storage
    storage_retry_attempts: int = 3

    # Identity / logging
    user_id: str | None = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def data_directory(self) -> Path:
        """Get absolute data directory path."""
        return self.data_dir.resolve()

    @property
    def database_path(self) -> Path:
        """Get absolute database path."""
        return self.db_path.resolve()

    @property
    def objects_directory(self) -> Path:
        """Get absolute object storage path."""
        return self.objects_dir.resolve()


settings = Settings()


@dataclass(frozen=True)
class MediaConstraints:
    """Constraint constants applied to a candidate upload."""

    max_file_size_bytes: int
    max_duration_seconds: float
    supported_formats: tuple[str, ...]
    supported_extensions: tuple[str, ...]
    max_title_length: int = 100
    max_description_length: int = 200
    blocked_terms: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "MediaConstraints":
        source = source or settings
        return cls(
            max_file_size_bytes=source.max_file_size_bytes,
            max_duration_seconds=source.max_duration_seconds,
            supported_formats=tuple(source.supported_formats),
            supported_extensions=tuple(ext.lower() for ext in source.supported_extensions),
            max_title_length=source.max_title_length,
            max_description_length=source.max_description_length,
            blocked_terms=tuple(source.blocked_terms),
        )
