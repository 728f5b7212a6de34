"""FastAPI routes for the clipfeed API."""

from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from clipfeed.api.schemas import FeedPageResponse, ValidationErrorResponse, VideoResponse

from ..auth import StaticIdentity
from ..exceptions import (
    AuthenticationError,
    ClipFeedError,
    NetworkError,
    ProbeError,
    ThumbnailError,
    UploadInProgressError,
    ValidationError,
)
from ..ingestion.source import MediaFile
from ..interfaces import FeedScope
from ..service import ClipFeedService
from ..storage.media import LocalObjectStore
from ..storage.models import VideoAsset, Visibility
from ..storage.records import SqlRecordStore

app = FastAPI(
    title="ClipFeed API",
    description="Short video uploads and a paginated feed",
    version="0.1.0",
)


def get_service(x_user_id: Optional[str] = Header(None)) -> ClipFeedService:
    """Create a ClipFeedService for the calling user."""
    return ClipFeedService(
        object_store=LocalObjectStore(),
        record_store=SqlRecordStore(),
        identity=StaticIdentity(x_user_id),
    )


def _to_response(video: VideoAsset) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        owner_id=video.owner_id,
        title=video.title,
        description=video.description,
        media_url=video.media_url,
        thumbnail_url=video.thumbnail_url,
        visibility=Visibility(video.visibility).value,
        like_count=video.like_count,
        comment_count=video.comment_count,
        view_count=video.view_count,
        duration_seconds=video.duration_seconds,
        file_size_bytes=video.file_size_bytes,
        created_at=video.created_at,
        updated_at=video.updated_at,
    )


@app.get("/")
async def root():
    """API root endpoint."""
    return {"message": "ClipFeed API", "version": "0.1.0"}


@app.post(
    "/videos",
    response_model=VideoResponse,
    status_code=201,
    responses={422: {"model": ValidationErrorResponse}},
)
async def upload_video(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    visibility: Visibility = Form(Visibility.PUBLIC),
    service: ClipFeedService = Depends(get_service),
):
    """Validate and upload a clip."""
    media = MediaFile(
        name=file.filename or "",
        content_type=file.content_type or "",
        data=await file.read(),
    )

    try:
        video = await service.upload_video(media, title, description, visibility)
    except ValidationError as e:
        return JSONResponse(
            status_code=422,
            content=ValidationErrorResponse(detail="Video rejected", errors=e.errors).model_dump(),
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except UploadInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except (ProbeError, ThumbnailError) as e:
        raise HTTPException(status_code=500, detail=str(e))

    return _to_response(video)


@app.get("/videos/{video_id}", response_model=VideoResponse)
async def get_video(video_id: str, service: ClipFeedService = Depends(get_service)):
    """Get video details."""
    try:
        video = await service.get_video(video_id)
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if not video:
        raise HTTPException(status_code=404, detail="Video not found")

    return _to_response(video)


@app.get("/feed", response_model=FeedPageResponse)
async def feed(
    scope: FeedScope = FeedScope.PUBLIC,
    cursor: Optional[str] = None,
    service: ClipFeedService = Depends(get_service),
):
    """Get one page of the feed, newest first."""
    try:
        page = await service.feed_page(scope, cursor)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ClipFeedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return FeedPageResponse(
        items=[_to_response(v) for v in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )
