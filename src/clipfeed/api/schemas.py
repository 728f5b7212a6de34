from datetime import datetime

from pydantic import BaseModel


class VideoResponse(BaseModel):
    id: str
    owner_id: str
    title: str | None
    description: str | None
    media_url: str
    thumbnail_url: str
    visibility: str
    like_count: int
    comment_count: int
    view_count: int
    duration_seconds: float
    file_size_bytes: int
    created_at: datetime
    updated_at: datetime


class FeedPageResponse(BaseModel):
    items: list[VideoResponse]
    next_cursor: str | None
    has_more: bool


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: list[str]
