"""Ingestion module for validating, probing and thumbnailing uploads."""

from .probe import FFprobeDurationProber, probe_duration
from .source import MediaFile, ObjectURL
from .thumbnail import FFmpegThumbnailExtractor, Thumbnail, extract_thumbnail
from .validation import ValidationResult, validate_video_file, validate_video_metadata

__all__ = [
    "MediaFile",
    "ObjectURL",
    "FFprobeDurationProber",
    "probe_duration",
    "FFmpegThumbnailExtractor",
    "Thumbnail",
    "extract_thumbnail",
    "ValidationResult",
    "validate_video_file",
    "validate_video_metadata",
]
