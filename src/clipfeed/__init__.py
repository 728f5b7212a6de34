"""ClipFeed - short video uploads and a swipeable, paginated feed."""

__version__ = "0.1.0"

from .interfaces import FeedFilter, FeedScope, IdentityProvider, ObjectStore, RecordStore
from .service import ClipFeedService

__all__ = [
    "FeedFilter",
    "FeedScope",
    "IdentityProvider",
    "ObjectStore",
    "RecordStore",
    "ClipFeedService",
]
