"""SQLModel data models for clipfeed."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class Comment(SQLModel):
    """A comment left on a video. Stored inline on the video record."""

    id: str
    user_id: str
    text: str
    created_at: datetime = Field(default_factory=utcnow)


class VideoAsset(SQLModel, table=True):
    """One uploaded clip and its denormalized counters.

    The record is written once, after both binary objects are stored, so
    media_url and thumbnail_url are never partially populated.
    """

    __tablename__ = "video_asset"

    id: Optional[str] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    title: Optional[str] = None
    description: Optional[str] = None
    media_url: str
    thumbnail_url: str
    visibility: Visibility = Field(default=Visibility.PUBLIC, index=True)
    likes: list[str] = Field(default_factory=list, sa_column=Column(JSON))  # user ids
    comments: list[dict] = Field(default_factory=list, sa_column=Column(JSON))  # Comment dicts, oldest first
    view_count: int = Field(default=0, ge=0)
    duration_seconds: float = Field(default=0.0, ge=0)
    file_size_bytes: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def like_count(self) -> int:
        return len(set(self.likes or []))

    @property
    def comment_count(self) -> int:
        return len(self.comments or [])
