"""Vertical swipe navigation over a feed."""

from dataclasses import dataclass
from enum import Enum

from ..config import settings
from .state import FeedController


@dataclass(frozen=True)
class GestureSample:
    """Touch start and end positions (pixels, y grows downward)."""

    start_y: float
    end_y: float

    @property
    def delta(self) -> float:
        return self.start_y - self.end_y


class SwipeDirection(str, Enum):
    NEXT = "next"  # swipe up
    PREVIOUS = "previous"  # swipe down
    NONE = "none"


def classify_swipe(sample: GestureSample, threshold: float) -> SwipeDirection:
    """Only movements strictly beyond the threshold count as swipes."""
    if sample.delta > threshold:
        return SwipeDirection.NEXT
    if sample.delta < -threshold:
        return SwipeDirection.PREVIOUS
    return SwipeDirection.NONE


class GestureNavigator:
    """Turns swipes into bounded moves through a FeedController's items."""

    def __init__(self, controller: FeedController, threshold: float | None = None):
        self.controller = controller
        self.threshold = threshold if threshold is not None else settings.swipe_threshold_px

    async def handle(self, sample: GestureSample) -> SwipeDirection:
        direction = classify_swipe(sample, self.threshold)
        if direction == SwipeDirection.NEXT:
            await self.next()
        elif direction == SwipeDirection.PREVIOUS:
            await self.previous()
        return direction

    async def next(self) -> bool:
        """Advance one item. At the last item, fetch more instead. Returns True if moved."""
        state = self.controller.state
        if not state.items:
            return False
        if state.current_index < len(state.items) - 1:
            await self.controller.go_to(state.current_index + 1)
            return True
        if state.has_more and not state.is_fetching_more:
            await self.controller.load_more()
        return False

    async def previous(self) -> bool:
        state = self.controller.state
        if state.current_index <= 0 or not state.items:
            return False
        await self.controller.go_to(state.current_index - 1)
        return True
