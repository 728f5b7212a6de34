"""ClipFeed Service - wires validation, upload and feed paging together."""

from typing import Callable

from .exceptions import AuthenticationError, ClipFeedError, ValidationError
from .ingestion.source import MediaFile
from .ingestion.thumbnail import FFmpegThumbnailExtractor
from .ingestion.validation import (
    DurationProber,
    ValidationResult,
    validate_video_file,
    validate_video_metadata,
)
from .interfaces import FeedCursor, FeedScope, IdentityProvider, ObjectStore, RecordStore
from .feed.pager import FeedPage, FeedPager
from .storage.models import VideoAsset, Visibility
from .upload.orchestrator import UploadOrchestrator
from .upload.session import UploadSession


class ClipFeedService:
    """Service layer used by the CLI and the HTTP API."""

    def __init__(
        self,
        object_store: ObjectStore,
        record_store: RecordStore,
        identity: IdentityProvider,
        prober: DurationProber | None = None,
        thumbnailer: FFmpegThumbnailExtractor | None = None,
    ):
        self.object_store = object_store
        self.record_store = record_store
        self.identity = identity
        self.prober = prober
        self.thumbnailer = thumbnailer

    async def validate(
        self,
        media: MediaFile | None,
        title: str | None = None,
        description: str | None = None,
    ) -> ValidationResult:
        """Run file and metadata validation, collecting every error."""
        result = validate_video_metadata(title, description)
        file_result = await validate_video_file(media, prober=self.prober)
        return ValidationResult(errors=file_result.errors + result.errors)

    async def upload_video(
        self,
        media: MediaFile,
        title: str | None = None,
        description: str | None = None,
        visibility: Visibility | str = Visibility.PUBLIC,
        on_progress: Callable[[UploadSession], None] | None = None,
    ) -> VideoAsset:
        """
        Validate then upload a clip.

        Raises:
            ValidationError: With every reason the file or metadata was rejected
            AuthenticationError: If nobody is signed in
        """
        if not self.identity.current_user_id():
            raise AuthenticationError("User must be authenticated to upload videos")

        title = (title or "").strip() or None
        description = (description or "").strip() or None

        result = await self.validate(media, title, description)
        if not result.is_valid:
            raise ValidationError(result.errors)

        orchestrator = UploadOrchestrator(
            object_store=self.object_store,
            record_store=self.record_store,
            identity=self.identity,
            thumbnailer=self.thumbnailer,
            on_progress=on_progress,
        )
        return await orchestrator.upload(media, title, description, visibility)

    async def get_video(self, asset_id: str) -> VideoAsset | None:
        return await self.record_store.get(asset_id)

    async def feed_page(
        self,
        scope: FeedScope = FeedScope.PUBLIC,
        cursor: FeedCursor | None = None,
    ) -> FeedPage:
        """Fetch one page of the feed for the signed-in user."""
        pager = FeedPager(self.record_store, scope, owner_id=self.identity.current_user_id())
        page = await pager.load_page(cursor)
        if page is None:
            raise ClipFeedError("Feed is already loading")
        return page
