"""Cursor-based paging over the video record store."""

import logging
from dataclasses import dataclass, field

from ..config import settings
from ..interfaces import FeedCursor, FeedFilter, FeedScope, RecordStore
from ..storage.models import VideoAsset

logger = logging.getLogger(__name__)


@dataclass
class FeedPage:
    """One batch of records and how to continue after it."""

    items: list[VideoAsset] = field(default_factory=list)
    next_cursor: FeedCursor | None = None
    has_more: bool = False


class FeedPager:
    """Fetches newest-first pages of a single result set.

    Not reentrant: while a fetch is pending, further calls are ignored and
    return None, so one cursor is never consumed twice.
    """

    def __init__(
        self,
        store: RecordStore,
        scope: FeedScope = FeedScope.PUBLIC,
        owner_id: str | None = None,
        batch_size: int | None = None,
    ):
        self.store = store
        self.feed_filter = FeedFilter(scope=FeedScope(scope), owner_id=owner_id)
        self.batch_size = batch_size or settings.feed_batch_size
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def load_page(self, cursor: FeedCursor | None = None) -> FeedPage | None:
        if self._busy:
            logger.debug("Feed fetch already in progress, ignoring")
            return None

        self._busy = True
        try:
            items, next_cursor = await self.store.query(
                self.feed_filter, self.batch_size, after=cursor
            )
        finally:
            self._busy = False

        # A short page means the result set is exhausted
        return FeedPage(
            items=list(items),
            next_cursor=next_cursor,
            has_more=len(items) == self.batch_size,
        )
