"""Upload orchestration: media, thumbnail, then the video record."""

import asyncio
import logging
import secrets
import string
import time
from datetime import datetime
from typing import Callable

from ..exceptions import AuthenticationError, UploadInProgressError
from ..ingestion.source import MediaFile
from ..ingestion.thumbnail import FFmpegThumbnailExtractor
from ..interfaces import IdentityProvider, ObjectStore, RecordStore
from ..storage.media import thumbnail_key, video_key
from ..storage.models import VideoAsset, Visibility, utcnow
from .session import UploadSession, UploadStage, advance, fail

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_last_key_millis = 0


def generate_asset_key() -> str:
    """Collision-resistant key: strictly increasing millis plus a random suffix."""
    global _last_key_millis
    millis = max(time.time_ns() // 1_000_000, _last_key_millis + 1)
    _last_key_millis = millis
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
    return f"video_{millis}_{suffix}"


def default_title(now: datetime) -> str:
    """Title used when the uploader gives none, e.g. "Video 3/7/2025"."""
    return f"Video {now.month}/{now.day}/{now.year}"


class UploadOrchestrator:
    """Drives one upload at a time through the stage table.

    Stages run strictly one after another so progress checkpoints are
    reproducible. A failure stops the pipeline; objects already stored are
    left in place. After dispose() the session is no longer updated and
    observers are no longer called, though an in-flight upload still runs
    to completion.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        record_store: RecordStore,
        identity: IdentityProvider,
        thumbnailer: FFmpegThumbnailExtractor | None = None,
        on_progress: Callable[[UploadSession], None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.object_store = object_store
        self.record_store = record_store
        self.identity = identity
        self.thumbnailer = thumbnailer or FFmpegThumbnailExtractor()
        self.on_progress = on_progress
        self.clock = clock or datetime.now
        self._session = UploadSession()
        self._alive = True

    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def is_uploading(self) -> bool:
        return self._session.is_busy

    def dispose(self) -> None:
        self._alive = False

    def _publish(self, session: UploadSession) -> None:
        if not self._alive:
            return
        self._session = session
        logger.debug("Upload %s (%d%%)", session.stage.value, session.progress_percent)
        if self.on_progress:
            self.on_progress(session)

    async def upload(
        self,
        media: MediaFile,
        title: str | None = None,
        description: str | None = None,
        visibility: Visibility | str = Visibility.PUBLIC,
    ) -> VideoAsset:
        """Upload a validated media file and persist its record.

        Args:
            media: File already accepted by validate_video_file
            title: Optional title; defaults to "Video M/D/YYYY"
            description: Optional description; defaults to ""
            visibility: public or private, stored unchanged

        Returns:
            The persisted VideoAsset with its generated id

        Raises:
            AuthenticationError: If nobody is signed in
            UploadInProgressError: If an upload is already running
        """
        owner_id = self.identity.current_user_id()
        if not owner_id:
            raise AuthenticationError("User must be authenticated to upload videos")
        if self._session.is_busy:
            raise UploadInProgressError("An upload is already in progress")

        visibility = Visibility(visibility)
        session = advance(self._session, UploadStage.INITIALIZING)
        self._publish(session)

        def enter(stage: UploadStage) -> None:
            nonlocal session
            session = advance(session, stage)
            self._publish(session)

        try:
            asset_key = generate_asset_key()

            enter(UploadStage.UPLOADING_MEDIA)
            media_url = await self.object_store.put(
                video_key(owner_id, asset_key),
                media.data,
                content_type="video/mp4",
                metadata={
                    "originalType": media.content_type,
                    "uploadedAt": utcnow().isoformat(),
                },
            )

            enter(UploadStage.GENERATING_THUMBNAIL)
            thumbnail = await self.thumbnailer.extract(media)

            enter(UploadStage.UPLOADING_THUMBNAIL)
            thumbnail_url = await self.object_store.put(
                thumbnail_key(owner_id, asset_key),
                thumbnail.data,
                content_type=thumbnail.content_type,
            )

            enter(UploadStage.PERSISTING_RECORD)
            asset = VideoAsset(
                owner_id=owner_id,
                title=title or default_title(self.clock()),
                description=description or "",
                media_url=media_url,
                thumbnail_url=thumbnail_url,
                visibility=visibility,
                likes=[],
                comments=[],
                view_count=0,
                duration_seconds=thumbnail.source_duration,
                file_size_bytes=media.size,
            )
            saved = await self.record_store.create(asset)
        except asyncio.CancelledError:
            logger.warning("Upload of %s cancelled while %s", media.name, session.stage.value)
            session = fail(session, "Upload cancelled")
            self._publish(session)
            raise
        except Exception as e:
            logger.error("Upload of %s failed while %s: %s", media.name, session.stage.value, e)
            session = fail(session, e)
            self._publish(session)
            raise

        enter(UploadStage.COMPLETE)
        logger.info("Uploaded %s as video %s", media.name, saved.id)
        return saved
