"""Interfaces (Protocols) for the external collaborators and for testing."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .storage.models import VideoAsset

# Continuation token handed out by a RecordStore. Only ever passed back.
FeedCursor = str


class FeedScope(str, Enum):
    PUBLIC = "public"
    MINE = "mine"


@dataclass(frozen=True)
class FeedFilter:
    """Which records a feed query selects."""

    scope: FeedScope = FeedScope.PUBLIC
    owner_id: str | None = None


class ObjectStore(Protocol):
    """Protocol for binary object storage."""

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store bytes under key and return a retrievable URL."""
        ...


class RecordStore(Protocol):
    """Protocol for the video record store."""

    async def create(self, asset: VideoAsset) -> VideoAsset:
        """Persist a new record and return it with its generated id."""
        ...

    async def get(self, asset_id: str) -> VideoAsset | None:
        """Fetch one record by id."""
        ...

    async def query(
        self,
        feed_filter: FeedFilter,
        limit: int,
        after: FeedCursor | None = None,
    ) -> tuple[list[VideoAsset], FeedCursor | None]:
        """Return records newest first, starting after the cursor."""
        ...


class IdentityProvider(Protocol):
    """Protocol for resolving the signed-in user."""

    def current_user_id(self) -> str | None:
        ...
