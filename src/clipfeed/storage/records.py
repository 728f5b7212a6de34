"""SQLite-backed video record store."""

import base64
import json
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import and_, or_, select

from ..exceptions import NetworkError
from ..interfaces import FeedCursor, FeedFilter, FeedScope
from .database import get_engine, get_session, init_db
from .models import VideoAsset, Visibility

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands stored timestamps back without an offset; they are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def encode_cursor(asset: VideoAsset) -> FeedCursor:
    """Build a continuation token pointing just past asset."""
    payload = json.dumps({"t": _as_utc(asset.created_at).isoformat(), "id": asset.id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def decode_cursor(cursor: FeedCursor) -> tuple[datetime, str]:
    """Inverse of encode_cursor. Raises ValueError for foreign tokens."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        return _as_utc(datetime.fromisoformat(payload["t"])), str(payload["id"])
    except (ValueError, KeyError, TypeError) as e:
        raise ValueError(f"Invalid feed cursor: {cursor!r}") from e


class SqlRecordStore:
    """Record store over SQLModel.

    Pages are keyset-paginated on (created_at desc, id desc) so a cursor
    stays valid while new records are inserted ahead of it.
    """

    def __init__(self, engine: Engine | None = None):
        self.engine = engine or get_engine()
        init_db(self.engine)

    async def create(self, asset: VideoAsset) -> VideoAsset:
        if asset.id is None:
            asset.id = uuid.uuid4().hex
        try:
            with get_session(self.engine) as session:
                session.add(asset)
                session.commit()
                session.refresh(asset)
                return asset
        except SQLAlchemyError as e:
            raise NetworkError(f"Failed to save video record: {e}") from e

    async def get(self, asset_id: str) -> VideoAsset | None:
        try:
            with get_session(self.engine) as session:
                return session.get(VideoAsset, asset_id)
        except SQLAlchemyError as e:
            raise NetworkError(f"Failed to load video {asset_id}: {e}") from e

    async def query(
        self,
        feed_filter: FeedFilter,
        limit: int,
        after: FeedCursor | None = None,
    ) -> tuple[list[VideoAsset], FeedCursor | None]:
        statement = select(VideoAsset)
        if feed_filter.scope == FeedScope.MINE:
            if not feed_filter.owner_id:
                return [], None
            statement = statement.where(VideoAsset.owner_id == feed_filter.owner_id)
        else:
            statement = statement.where(VideoAsset.visibility == Visibility.PUBLIC)

        if after:
            created_at, last_id = decode_cursor(after)
            statement = statement.where(
                or_(
                    VideoAsset.created_at < created_at,
                    and_(VideoAsset.created_at == created_at, VideoAsset.id < last_id),
                )
            )

        statement = statement.order_by(
            VideoAsset.created_at.desc(), VideoAsset.id.desc()
        ).limit(limit)

        try:
            with get_session(self.engine) as session:
                items = list(session.exec(statement).all())
        except SQLAlchemyError as e:
            raise NetworkError(f"Failed to load videos: {e}") from e

        logger.debug("Loaded %d %s records", len(items), feed_filter.scope.value)
        next_cursor = encode_cursor(items[-1]) if items else None
        return items, next_cursor
