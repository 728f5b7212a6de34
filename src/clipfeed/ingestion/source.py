"""Candidate media files and the temporary handles used to decode them."""

import logging
import mimetypes
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaFile:
    """An uploaded file: its bytes plus the name and MIME type it was declared with."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return PurePath(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> "MediaFile":
        """Read a file from disk, guessing the MIME type from its name if not given."""
        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, content_type=content_type or "", data=path.read_bytes())


class ObjectURL:
    """A temporary file standing in for a media file while it is decoded.

    Exactly one owner creates it and it is removed exactly once, whichever way
    the owner exits. Use it as a context manager.
    """

    def __init__(self, path: Path):
        self.path = path
        self._released = False

    @classmethod
    def create(cls, media: MediaFile) -> "ObjectURL":
        fd, name = tempfile.mkstemp(prefix="clipfeed_", suffix=media.extension or ".bin")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(media.data)
        except BaseException:
            os.unlink(name)
            raise
        return cls(Path(name))

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.debug("Object URL %s already removed", self.path)

    def __str__(self) -> str:
        return str(self.path)

    def __enter__(self) -> "ObjectURL":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
