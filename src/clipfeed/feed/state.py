"""Feed state owned by a consuming view, and the controller that fills it."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import NetworkError
from ..interfaces import FeedCursor, FeedScope, RecordStore
from ..storage.models import VideoAsset, Visibility
from .pager import FeedPager

logger = logging.getLogger(__name__)


class FeedStatus(str, Enum):
    IDLE = "idle"  # nothing requested yet
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"  # first page confirmed empty
    ERROR = "error"  # first page failed; retry with refresh()


@dataclass
class FeedState:
    items: list[VideoAsset] = field(default_factory=list)
    current_index: int = 0
    has_more: bool = True
    is_fetching_more: bool = False
    status: FeedStatus = FeedStatus.IDLE
    error: str | None = None
    cursor: FeedCursor | None = None

    @property
    def current(self) -> VideoAsset | None:
        if 0 <= self.current_index < len(self.items):
            return self.items[self.current_index]
        return None

    @property
    def position_label(self) -> str:
        if not self.items:
            return "0 of 0"
        return f"{self.current_index + 1} of {len(self.items)}"


class FeedController:
    """Loads pages into a FeedState and keeps the navigation position valid.

    Every refresh() starts a new result set. Responses that arrive for an
    older result set, or after dispose(), are dropped without touching state.
    """

    def __init__(
        self,
        store: RecordStore,
        scope: FeedScope = FeedScope.PUBLIC,
        owner_id: str | None = None,
        batch_size: int | None = None,
    ):
        self.store = store
        self.scope = FeedScope(scope)
        self.owner_id = owner_id
        self.batch_size = batch_size
        self.state = FeedState()
        self.pager = self._new_pager()
        self._generation = 0
        self._alive = True

    def _new_pager(self) -> FeedPager:
        return FeedPager(self.store, self.scope, self.owner_id, self.batch_size)

    def _is_stale(self, generation: int) -> bool:
        return not self._alive or generation != self._generation

    def dispose(self) -> None:
        self._alive = False

    async def refresh(self) -> FeedState:
        """Load the first page of the current scope, replacing all items."""
        if not self._alive:
            return self.state
        self._generation += 1
        generation = self._generation
        self.pager = self._new_pager()
        self.state = FeedState(status=FeedStatus.LOADING)

        try:
            page = await self.pager.load_page()
        except NetworkError as e:
            if not self._is_stale(generation):
                logger.warning("Failed to load videos: %s", e)
                self.state.status = FeedStatus.ERROR
                self.state.error = "Failed to load videos"
            return self.state

        if self._is_stale(generation) or page is None:
            return self.state

        self.state.items = page.items
        self.state.cursor = page.next_cursor
        self.state.has_more = page.has_more
        self.state.status = FeedStatus.READY if page.items else FeedStatus.EMPTY
        await self.ensure_lookahead()
        return self.state

    async def change_scope(self, scope: FeedScope, owner_id: str | None = None) -> FeedState:
        self.scope = FeedScope(scope)
        self.owner_id = owner_id
        return await self.refresh()

    async def load_more(self) -> bool:
        """Append the next page. Returns True if a page was appended."""
        state = self.state
        if (
            not self._alive
            or state.status != FeedStatus.READY
            or not state.has_more
            or state.is_fetching_more
        ):
            return False

        generation = self._generation
        state.is_fetching_more = True
        try:
            page = await self.pager.load_page(state.cursor)
        except NetworkError as e:
            if not self._is_stale(generation):
                logger.warning("Failed to load more videos: %s", e)
                state.error = "Failed to load more videos"
            return False
        finally:
            if self._alive:
                state.is_fetching_more = False

        if self._is_stale(generation) or page is None:
            return False

        state.items.extend(page.items)
        state.cursor = page.next_cursor or state.cursor
        state.has_more = page.has_more
        state.error = None
        await self.ensure_lookahead()
        return bool(page.items)

    async def ensure_lookahead(self) -> bool:
        """Prefetch when fewer than two items remain past the current one.

        Runs after every move and every time items are added, so small
        batches keep loading until the rule is satisfied or the feed ends.
        """
        state = self.state
        if (
            state.items
            and state.current_index >= len(state.items) - 2
            and state.has_more
            and not state.is_fetching_more
        ):
            return await self.load_more()
        return False

    async def go_to(self, index: int) -> int:
        """Move to index, clamped to the loaded items, then keep lookahead."""
        state = self.state
        if not state.items:
            return 0
        state.current_index = min(max(0, index), len(state.items) - 1)
        await self.ensure_lookahead()
        return state.current_index

    def prepend(self, asset: VideoAsset) -> bool:
        """Show a freshly uploaded clip at the top if it belongs to this feed."""
        if self.scope == FeedScope.PUBLIC:
            belongs = asset.visibility == Visibility.PUBLIC
        else:
            belongs = asset.owner_id == self.owner_id
        if not belongs or not self._alive:
            return False
        self.state.items.insert(0, asset)
        self.state.current_index = 0
        if self.state.status in (FeedStatus.EMPTY, FeedStatus.IDLE):
            self.state.status = FeedStatus.READY
        return True
