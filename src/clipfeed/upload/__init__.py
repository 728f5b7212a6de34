"""Upload module: session state machine and orchestrator."""

from .orchestrator import UploadOrchestrator, default_title, generate_asset_key
from .session import STAGE_PROGRESS, TRANSITIONS, UploadSession, UploadStage, advance, fail

__all__ = [
    "UploadOrchestrator",
    "default_title",
    "generate_asset_key",
    "STAGE_PROGRESS",
    "TRANSITIONS",
    "UploadSession",
    "UploadStage",
    "advance",
    "fail",
]
