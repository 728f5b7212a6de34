"""Feed module: paging, view state and swipe navigation."""

from .gestures import GestureNavigator, GestureSample, SwipeDirection, classify_swipe
from .pager import FeedPage, FeedPager
from .state import FeedController, FeedState, FeedStatus

__all__ = [
    "GestureNavigator",
    "GestureSample",
    "SwipeDirection",
    "classify_swipe",
    "FeedPage",
    "FeedPager",
    "FeedController",
    "FeedState",
    "FeedStatus",
]
