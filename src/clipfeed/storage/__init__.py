"""Storage module for the record store and binary object storage."""

from .database import get_session, init_db
from .models import Comment, VideoAsset, Visibility

__all__ = [
    "get_session",
    "init_db",
    "Comment",
    "VideoAsset",
    "Visibility",
]
