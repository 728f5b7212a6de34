"""Media decoding using FFmpeg / FFprobe subprocesses."""

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path

from ..config import settings

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """An ffmpeg/ffprobe invocation failed or could not be started."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


@dataclass(frozen=True)
class VideoMetadata:
    """Native properties of the first video stream."""

    width: int
    height: int
    duration: float


async def run_tool(args: list[str]) -> bytes:
    """Run a media tool and return its stdout.

    The child process is killed if the caller is cancelled (e.g. by a deadline).
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ToolError(f"{args[0]} not found") from e

    try:
        stdout, stderr = await process.communicate()
    finally:
        if process.returncode is None:
            process.kill()
            await process.wait()

    if process.returncode != 0:
        message = stderr.decode(errors="replace").strip().splitlines()
        raise ToolError(
            message[-1] if message else f"{args[0]} exited with {process.returncode}",
            returncode=process.returncode,
            stderr=stderr.decode(errors="replace"),
        )
    return stdout


def _parse_duration(raw: str | None) -> float:
    try:
        duration = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ToolError(f"Unreadable duration: {raw!r}") from e
    if not math.isfinite(duration) or duration < 0:
        raise ToolError(f"Unreadable duration: {raw!r}")
    return duration


async def read_duration(media_path: Path) -> float:
    """Get container duration in seconds."""
    stdout = await run_tool(
        [
            settings.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(media_path),
        ]
    )
    return _parse_duration(stdout.decode().strip())


async def read_video_metadata(media_path: Path) -> VideoMetadata:
    """Get width, height and duration of the first video stream."""
    stdout = await run_tool(
        [
            settings.ffprobe_binary,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height,duration:format=duration",
            "-of", "json",
            str(media_path),
        ]
    )
    try:
        data = json.loads(stdout)
        stream = data["streams"][0]
        width, height = int(stream["width"]), int(stream["height"])
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ToolError("No video stream found") from e

    if width <= 0 or height <= 0:
        raise ToolError(f"Invalid frame size {width}x{height}")

    # Container duration is more reliable than the stream's for mov/mp4
    raw = data.get("format", {}).get("duration") or stream.get("duration")
    return VideoMetadata(width=width, height=height, duration=_parse_duration(raw))


async def grab_frame(media_path: Path, seconds: float) -> bytes:
    """Decode the frame at the given time and return it as PNG bytes."""
    return await run_tool(
        [
            settings.ffmpeg_binary,
            "-v", "error",
            "-ss", f"{seconds:.3f}",
            "-i", str(media_path),
            "-frames:v", "1",
            "-f", "image2pipe",
            "-vcodec", "png",
            "-",
        ]
    )
