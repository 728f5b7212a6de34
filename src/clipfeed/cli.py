"""CLI interface for clipfeed."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .auth import StaticIdentity
from .config import settings
from .exceptions import AuthenticationError, ClipFeedError, ValidationError
from .feed.gestures import GestureNavigator, GestureSample
from .feed.state import FeedController, FeedStatus
from .ingestion.source import MediaFile
from .interfaces import FeedScope
from .service import ClipFeedService
from .storage.database import init_db
from .storage.media import LocalObjectStore, get_storage_stats
from .storage.records import SqlRecordStore
from .upload.session import UploadSession

app = typer.Typer(help="ClipFeed - short video uploads and a swipeable feed")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _create_service(user: str | None = None) -> ClipFeedService:
    """Create a ClipFeedService with default dependencies."""
    return ClipFeedService(
        object_store=LocalObjectStore(),
        record_store=SqlRecordStore(),
        identity=StaticIdentity(user or settings.user_id),
    )


def _load_media(path: Path, content_type: str | None) -> MediaFile:
    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    return MediaFile.from_path(path, content_type)


def _print_errors(errors: list[str]) -> None:
    console.print("[red]Video rejected:[/red]")
    for error in errors:
        console.print(f"  • {error}")


@app.command()
def validate(
    path: Path = typer.Argument(..., help="Video file to check"),
    content_type: Optional[str] = typer.Option(None, "--type", help="Declared MIME type"),
):
    """Check a video file against the upload constraints."""
    service = _create_service()
    media = _load_media(path, content_type)
    result = asyncio.run(service.validate(media))

    if not result.is_valid:
        _print_errors(result.errors)
        raise typer.Exit(1)

    console.print(f"[green]{path.name} is ready to upload[/green] ({media.size / (1024 * 1024):.1f} MB)")


@app.command()
def upload(
    path: Path = typer.Argument(..., help="Video file to upload"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Video title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Video description"),
    private: bool = typer.Option(False, "--private", help="Hide from the public feed"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Uploading user id"),
    content_type: Optional[str] = typer.Option(None, "--type", help="Declared MIME type"),
):
    """Upload a video clip."""
    init_db()
    service = _create_service(user)
    media = _load_media(path, content_type)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task("Validating...", total=100)

        def on_progress(session: UploadSession) -> None:
            progress.update(
                task,
                completed=session.progress_percent,
                description=session.status_message or session.stage.value,
            )

        try:
            video = asyncio.run(
                service.upload_video(
                    media,
                    title=title,
                    description=description,
                    visibility="private" if private else "public",
                    on_progress=on_progress,
                )
            )
        except ValidationError as e:
            progress.stop()
            _print_errors(e.errors)
            raise typer.Exit(1)
        except AuthenticationError as e:
            progress.stop()
            console.print(f"[red]{e}[/red]")
            console.print("\nSet CLIPFEED_USER_ID or pass --user.")
            raise typer.Exit(1)
        except ClipFeedError as e:
            progress.stop()
            console.print(f"\n[red]Upload failed ({type(e).__name__}): {e}[/red]")
            console.print("Run the command again to retry.")
            raise typer.Exit(1)

    console.print(f"\n[green]Upload complete![/green]")
    console.print(f"ID: {video.id}")
    console.print(f"Title: {video.title}")
    console.print(f"Visibility: {video.visibility.value}")
    console.print(f"Duration: {video.duration_seconds:.1f}s")
    console.print(f"Video: {video.media_url}")
    console.print(f"Thumbnail: {video.thumbnail_url}")


async def _browse(controller: FeedController, swipes: list[int]) -> None:
    await controller.refresh()
    navigator = GestureNavigator(controller)
    for delta in swipes:
        await navigator.handle(GestureSample(start_y=float(delta), end_y=0.0))


@app.command()
def feed(
    scope: FeedScope = typer.Option(FeedScope.PUBLIC, "--scope", "-s", help="public or mine"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Signed-in user id"),
    swipe: Optional[list[int]] = typer.Option(
        None, "--swipe", help="Replay a swipe: positive = up (next), negative = down (previous)"
    ),
):
    """Browse the video feed."""
    init_db()
    controller = FeedController(SqlRecordStore(), scope=scope, owner_id=user or settings.user_id)

    with console.status("Loading videos..."):
        asyncio.run(_browse(controller, swipe or []))

    state = controller.state
    if state.status == FeedStatus.ERROR:
        console.print(f"[red]{state.error}[/red] Run the command again to retry.")
        raise typer.Exit(1)
    if state.status == FeedStatus.EMPTY:
        if scope == FeedScope.MINE:
            console.print("[yellow]No videos uploaded yet.[/yellow]")
        else:
            console.print("[yellow]No videos yet. Be the first to share one![/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Feed ({scope.value})")
    table.add_column("#", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Owner", style="magenta")
    table.add_column("Duration", style="blue")
    table.add_column("Likes", style="yellow")

    for i, v in enumerate(state.items):
        marker = "▶" if i == state.current_index else str(i + 1)
        duration = f"{int(v.duration_seconds // 60)}:{int(v.duration_seconds % 60):02d}"
        table.add_row(marker, (v.title or "")[:40], v.owner_id[:20], duration, str(v.like_count))

    console.print(table)
    more = " (more available)" if state.has_more else ""
    console.print(f"Position: {state.position_label}{more}")
    if state.error:
        console.print(f"[yellow]{state.error}[/yellow]")


@app.command()
def storage():
    """Show storage usage statistics."""
    stats = get_storage_stats()

    console.print(f"\n[bold]Storage Usage[/bold]")
    console.print(f"Total: {stats['total_size_mb']} MB")
    console.print(f"Users: {stats['user_count']}")

    if stats["users"]:
        table = Table(title="Users by Size")
        table.add_column("User ID", style="cyan")
        table.add_column("Videos", style="magenta")
        table.add_column("Size (MB)", style="green")

        for u in sorted(stats["users"], key=lambda x: x["size_bytes"], reverse=True):
            size_mb = round(u["size_bytes"] / (1024 * 1024), 2)
            table.add_row(u["user_id"], str(u["video_count"]), str(size_mb))

        console.print(table)


@app.command()
def config():
    """Show current configuration."""
    console.print(f"\n[bold]Current Configuration[/bold]")
    console.print(f"User: {settings.user_id or 'Not set'}")
    console.print(f"Data Directory: {settings.data_directory}")
    console.print(f"Object Storage: {settings.objects_directory}")
    console.print(f"Database: {settings.database_path}")

    console.print(f"\n[bold]Upload Constraints[/bold]")
    console.print(f"Max size: {settings.max_file_size_bytes / (1024 * 1024):.0f} MB")
    console.print(f"Max duration: {settings.max_duration_seconds:g} seconds")
    console.print(f"Formats: {', '.join(settings.supported_formats)}")
    console.print(f"Extensions: {', '.join(settings.supported_extensions)}")

    console.print(f"\n[bold]Media Tools[/bold]")
    console.print(f"ffprobe: {settings.ffprobe_binary} (timeout {settings.probe_timeout_seconds:g}s)")
    console.print(f"ffmpeg: {settings.ffmpeg_binary} (timeout {settings.thumbnail_timeout_seconds:g}s)")
    console.print(f"Thumbnail: max {settings.thumbnail_max_dimension}px, quality {settings.thumbnail_quality}")

    console.print(f"\n[bold]Feed[/bold]")
    console.print(f"Batch size: {settings.feed_batch_size}")
    console.print(f"Swipe threshold: {settings.swipe_threshold_px:g}px")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind"),
):
    """Start the API server."""
    import uvicorn

    init_db()
    console.print(f"Starting server at http://{host}:{port}")
    uvicorn.run("clipfeed.api.routes:app", host=host, port=port, reload=True)


if __name__ == "__main__":
    app()
