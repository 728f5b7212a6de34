"""Upload session state machine."""

from dataclasses import dataclass, replace
from enum import Enum

from ..exceptions import InvalidTransitionError


class UploadStage(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    UPLOADING_MEDIA = "uploading_media"
    GENERATING_THUMBNAIL = "generating_thumbnail"
    UPLOADING_THUMBNAIL = "uploading_thumbnail"
    PERSISTING_RECORD = "persisting_record"
    COMPLETE = "complete"
    FAILED = "failed"


# Progress reported on entering each stage
STAGE_PROGRESS: dict[UploadStage, int] = {
    UploadStage.IDLE: 0,
    UploadStage.INITIALIZING: 0,
    UploadStage.UPLOADING_MEDIA: 30,
    UploadStage.GENERATING_THUMBNAIL: 60,
    UploadStage.UPLOADING_THUMBNAIL: 80,
    UploadStage.PERSISTING_RECORD: 90,
    UploadStage.COMPLETE: 100,
}

STAGE_MESSAGES: dict[UploadStage, str] = {
    UploadStage.INITIALIZING: "Initializing...",
    UploadStage.UPLOADING_MEDIA: "Uploading video...",
    UploadStage.GENERATING_THUMBNAIL: "Creating thumbnail...",
    UploadStage.UPLOADING_THUMBNAIL: "Uploading thumbnail...",
    UploadStage.PERSISTING_RECORD: "Saving video details...",
    UploadStage.COMPLETE: "Upload complete!",
}

TRANSITIONS: dict[UploadStage, frozenset[UploadStage]] = {
    UploadStage.IDLE: frozenset({UploadStage.INITIALIZING}),
    UploadStage.INITIALIZING: frozenset({UploadStage.UPLOADING_MEDIA, UploadStage.FAILED}),
    UploadStage.UPLOADING_MEDIA: frozenset({UploadStage.GENERATING_THUMBNAIL, UploadStage.FAILED}),
    UploadStage.GENERATING_THUMBNAIL: frozenset({UploadStage.UPLOADING_THUMBNAIL, UploadStage.FAILED}),
    UploadStage.UPLOADING_THUMBNAIL: frozenset({UploadStage.PERSISTING_RECORD, UploadStage.FAILED}),
    UploadStage.PERSISTING_RECORD: frozenset({UploadStage.COMPLETE, UploadStage.FAILED}),
    # A retry always starts the whole pipeline again
    UploadStage.COMPLETE: frozenset({UploadStage.INITIALIZING}),
    UploadStage.FAILED: frozenset({UploadStage.INITIALIZING}),
}

SETTLED_STAGES = frozenset({UploadStage.IDLE, UploadStage.COMPLETE, UploadStage.FAILED})


@dataclass(frozen=True)
class UploadSession:
    """Snapshot of one upload's progress."""

    stage: UploadStage = UploadStage.IDLE
    progress_percent: int = 0
    status_message: str | None = None
    error_message: str | None = None

    @property
    def is_busy(self) -> bool:
        return self.stage not in SETTLED_STAGES


def can_transition(current: UploadStage, target: UploadStage) -> bool:
    return target in TRANSITIONS[current]


def advance(session: UploadSession, stage: UploadStage) -> UploadSession:
    """Enter the next stage, moving progress to its checkpoint."""
    if not can_transition(session.stage, stage) or stage == UploadStage.FAILED:
        raise InvalidTransitionError(session.stage, stage)
    if stage == UploadStage.INITIALIZING:
        return UploadSession(stage=stage, progress_percent=0, status_message=STAGE_MESSAGES[stage])
    return replace(
        session,
        stage=stage,
        progress_percent=max(session.progress_percent, STAGE_PROGRESS[stage]),
        status_message=STAGE_MESSAGES[stage],
        error_message=None,
    )


def fail(session: UploadSession, error: BaseException | str) -> UploadSession:
    """Stop the pipeline. Progress stays where it was so it never decreases."""
    if not can_transition(session.stage, UploadStage.FAILED):
        raise InvalidTransitionError(session.stage, UploadStage.FAILED)
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
    else:
        message = error
    return replace(
        session,
        stage=UploadStage.FAILED,
        status_message=None,
        error_message=message or "Video upload failed",
    )
