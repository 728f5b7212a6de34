"""Duration probing for candidate uploads."""

import logging

from ..config import settings
from ..exceptions import ProbeError, ProbeTimeoutError
from .deadline import with_deadline
from .processor import ToolError, read_duration
from .source import MediaFile, ObjectURL

logger = logging.getLogger(__name__)


class FFprobeDurationProber:
    """Reads the playable duration of a media file with ffprobe.

    Each call makes a single attempt bounded by ``timeout`` seconds. The
    temporary object URL is released on success, failure and timeout alike.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else settings.probe_timeout_seconds

    async def probe(self, media: MediaFile) -> float:
        with ObjectURL.create(media) as url:
            return await with_deadline(
                self._read(url),
                self.timeout,
                lambda: self._timed_out(media),
            )

    async def _read(self, url: ObjectURL) -> float:
        try:
            return await read_duration(url.path)
        except ToolError as e:
            raise ProbeError(f"Failed to load video metadata: {e}") from e

    def _timed_out(self, media: MediaFile) -> ProbeTimeoutError:
        logger.warning("Duration probe of %s timed out after %ss", media.name, self.timeout)
        return ProbeTimeoutError(f"Timed out reading video duration after {self.timeout:g} seconds")


async def probe_duration(media: MediaFile) -> float:
    """Probe duration with the configured timeout."""
    return await FFprobeDurationProber().probe(media)
