"""Local object storage for uploaded media and thumbnails."""

import asyncio
import json
import logging
from pathlib import Path

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import settings
from ..exceptions import NetworkError

logger = logging.getLogger(__name__)


def video_key(owner_id: str, asset_key: str) -> str:
    """Object key for an uploaded video."""
    return f"users/{owner_id}/videos/{asset_key}.mp4"


def thumbnail_key(owner_id: str, asset_key: str) -> str:
    """Object key for a generated thumbnail."""
    return f"users/{owner_id}/thumbnails/{asset_key}.jpg"


class LocalObjectStore:
    """Object store backed by a directory tree.

    Each object is written next to a ``.meta.json`` sidecar holding its
    content type and custom metadata.
    """

    def __init__(self, root: Path | None = None, base_url: str | None = None):
        self.root = (root or settings.objects_directory).resolve()
        self.base_url = base_url if base_url is not None else settings.public_base_url

    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Object key escapes storage root: {key}")
        return path

    def url_for(self, key: str) -> str:
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{key}"
        return self.path_for(key).as_uri()

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        path = self.path_for(key)
        sidecar = {"contentType": content_type, "size": len(data), "customMetadata": metadata or {}}
        try:
            await self._write(path, data, sidecar)
        except OSError as e:
            raise NetworkError(f"Failed to store {key}: {e}") from e
        logger.debug("Stored %s (%d bytes)", key, len(data))
        return self.url_for(key)

    @retry(
        stop=stop_after_attempt(settings.storage_retry_attempts),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    async def _write(self, path: Path, data: bytes, sidecar: dict) -> None:
        await asyncio.to_thread(_write_files, path, data, sidecar)


def _write_files(path: Path, data: bytes, sidecar: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    path.with_name(path.name + ".meta.json").write_text(json.dumps(sidecar, indent=2))


def get_storage_stats(root: Path | None = None) -> dict:
    """Get storage usage statistics per user."""
    root = root or settings.objects_directory
    users_dir = root / "users"
    if not users_dir.exists():
        return {"total_size": 0, "total_size_mb": 0.0, "user_count": 0, "users": []}

    users = []
    total_size = 0

    for user_dir in users_dir.iterdir():
        if not user_dir.is_dir():
            continue
        files = [f for f in user_dir.rglob("*") if f.is_file() and not f.name.endswith(".meta.json")]
        size = sum(f.stat().st_size for f in files)
        videos = sum(1 for f in files if f.parent.name == "videos")
        users.append({"user_id": user_dir.name, "size_bytes": size, "video_count": videos})
        total_size += size

    return {
        "total_size": total_size,
        "total_size_mb": round(total_size / (1024 * 1024), 2),
        "user_count": len(users),
        "users": users,
    }
