"""Thumbnail extraction: one decoded frame, downscaled and JPEG-encoded."""

import asyncio
import io
import logging
import shutil
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from ..config import settings
from ..exceptions import CanvasUnavailableError, ThumbnailError, ThumbnailTimeoutError
from .deadline import with_deadline
from .processor import ToolError, grab_frame, read_video_metadata
from .source import MediaFile, ObjectURL

logger = logging.getLogger(__name__)

END_OF_STREAM_MARGIN = 0.1  # seconds


@dataclass(frozen=True)
class Thumbnail:
    """Encoded thumbnail image plus what was learned about the source."""

    data: bytes
    width: int
    height: int
    source_duration: float
    content_type: str = "image/jpeg"


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scale (width, height) down so neither side exceeds max_dimension.

    Aspect ratio is preserved to within rounding; sources already small enough
    are returned unchanged.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid frame size {width}x{height}")
    scale = min(1.0, max_dimension / max(width, height))
    return (
        min(max_dimension, max(1, round(width * scale))),
        min(max_dimension, max(1, round(height * scale))),
    )


def clamp_seek(seconds: float, duration: float) -> float:
    """Clamp a seek time into [0, duration - 0.1] so it never lands past the end."""
    upper = max(0.0, duration - END_OF_STREAM_MARGIN)
    return min(max(0.0, seconds), upper)


def encode_jpeg(frame: bytes, size: tuple[int, int], quality: int) -> bytes:
    """Decode a raw frame image, resize it and encode as JPEG."""
    try:
        with Image.open(io.BytesIO(frame)) as image:
            image = image.convert("RGB")
            if image.size != size:
                image = image.resize(size, Image.Resampling.LANCZOS)
            out = io.BytesIO()
            image.save(out, format="JPEG", quality=quality, optimize=True)
            return out.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ThumbnailError("Failed to generate thumbnail") from e


class FFmpegThumbnailExtractor:
    """Extracts a JPEG thumbnail from a video file using ffmpeg and Pillow."""

    def __init__(
        self,
        timeout: float | None = None,
        max_dimension: int | None = None,
        quality: int | None = None,
    ):
        self.timeout = timeout if timeout is not None else settings.thumbnail_timeout_seconds
        self.max_dimension = max_dimension or settings.thumbnail_max_dimension
        self.quality = quality or settings.thumbnail_quality

    async def extract(self, media: MediaFile, seek_seconds: float | None = None) -> Thumbnail:
        if shutil.which(settings.ffmpeg_binary) is None:
            raise CanvasUnavailableError(f"Cannot rasterize frames: {settings.ffmpeg_binary} not available")

        if seek_seconds is None:
            seek_seconds = settings.thumbnail_seek_seconds

        with ObjectURL.create(media) as url:
            return await with_deadline(
                self._extract(url, seek_seconds),
                self.timeout,
                lambda: self._timed_out(media),
            )

    async def _extract(self, url: ObjectURL, seek_seconds: float) -> Thumbnail:
        try:
            meta = await read_video_metadata(url.path)
            size = fit_within(meta.width, meta.height, self.max_dimension)
            position = clamp_seek(seek_seconds, meta.duration)
            frame = await grab_frame(url.path, position)
        except ToolError as e:
            raise ThumbnailError(f"Failed to load video: {e}") from e

        if not frame:
            raise ThumbnailError("Failed to generate thumbnail")

        data = await asyncio.to_thread(encode_jpeg, frame, size, self.quality)
        logger.debug("Thumbnail %dx%d at %.2fs (%d bytes)", size[0], size[1], position, len(data))
        return Thumbnail(data=data, width=size[0], height=size[1], source_duration=meta.duration)

    def _timed_out(self, media: MediaFile) -> ThumbnailTimeoutError:
        logger.warning("Thumbnail extraction for %s timed out after %ss", media.name, self.timeout)
        return ThumbnailTimeoutError(f"Timed out generating thumbnail after {self.timeout:g} seconds")


async def extract_thumbnail(media: MediaFile, seek_seconds: float | None = None) -> Thumbnail:
    """Extract a thumbnail with the configured limits."""
    return await FFmpegThumbnailExtractor().extract(media, seek_seconds)
