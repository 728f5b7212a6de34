import asyncio
import re
import unittest
from datetime import datetime

from clipfeed.auth import StaticIdentity
from clipfeed.exceptions import (
    AuthenticationError,
    NetworkError,
    ThumbnailError,
    UploadInProgressError,
    ValidationError,
)
from clipfeed.ingestion.source import MediaFile
from clipfeed.service import ClipFeedService
from clipfeed.storage.models import Visibility
from clipfeed.upload.orchestrator import UploadOrchestrator, generate_asset_key
from clipfeed.upload.session import UploadStage

from .fakes import FakeProber, FakeThumbnailer, MemoryObjectStore, MemoryRecordStore

MB = 1024 * 1024

VIDEO_KEY = re.compile(r"^users/u1/videos/video_\d+_[a-z0-9]{9}\.mp4$")
THUMBNAIL_KEY = re.compile(r"^users/u1/thumbnails/video_\d+_[a-z0-9]{9}\.jpg$")


def clip(size=10 * MB) -> MediaFile:
    return MediaFile(name="clip.mp4", content_type="video/mp4", data=b"\x00" * size)


class TestAssetKey(unittest.TestCase):
    def test_format(self):
        self.assertRegex(generate_asset_key(), r"^video_\d+_[a-z0-9]{9}$")

    def test_unique_and_ordered(self):
        keys = [generate_asset_key() for _ in range(200)]
        self.assertEqual(len(set(keys)), len(keys))
        millis = [int(k.split("_")[1]) for k in keys]
        self.assertEqual(millis, sorted(set(millis)))


class TestUploadOrchestrator(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.objects = MemoryObjectStore()
        self.records = MemoryRecordStore()
        self.thumbnailer = FakeThumbnailer(duration=12.5)
        self.updates = []

    def orchestrator(self, user_id="u1", **kwargs) -> UploadOrchestrator:
        return UploadOrchestrator(
            object_store=self.objects,
            record_store=self.records,
            identity=StaticIdentity(user_id),
            thumbnailer=kwargs.pop("thumbnailer", self.thumbnailer),
            on_progress=self.updates.append,
            **kwargs,
        )

    async def test_happy_path(self):
        orchestrator = self.orchestrator()
        asset = await orchestrator.upload(clip())

        progress = [s.progress_percent for s in self.updates]
        self.assertEqual(progress, sorted(progress))
        self.assertEqual(progress[-1], 100)
        self.assertEqual(self.updates[-1].stage, UploadStage.COMPLETE)
        self.assertFalse(orchestrator.is_uploading)

        self.assertEqual(len(self.objects.keys), 2)
        self.assertRegex(self.objects.keys[0], VIDEO_KEY)
        self.assertRegex(self.objects.keys[1], THUMBNAIL_KEY)
        _, content_type, metadata = self.objects.objects[self.objects.keys[0]]
        self.assertEqual(content_type, "video/mp4")
        self.assertEqual(metadata["originalType"], "video/mp4")
        self.assertIn("uploadedAt", metadata)

        self.assertEqual(asset.id, "rec1")
        self.assertEqual(asset.owner_id, "u1")
        self.assertRegex(asset.title, r"^Video \d{1,2}/\d{1,2}/\d{4}$")
        self.assertEqual(asset.description, "")
        self.assertEqual(asset.visibility, Visibility.PUBLIC)
        self.assertEqual(asset.media_url, f"memory://{self.objects.keys[0]}")
        self.assertEqual(asset.thumbnail_url, f"memory://{self.objects.keys[1]}")
        self.assertEqual(asset.duration_seconds, 12.5)
        self.assertEqual(asset.file_size_bytes, 10 * MB)
        self.assertEqual(asset.like_count, 0)
        self.assertEqual(asset.comment_count, 0)
        self.assertEqual(asset.view_count, 0)

    async def test_default_title_uses_clock(self):
        orchestrator = self.orchestrator(clock=lambda: datetime(2025, 3, 7, 9, 30))
        asset = await orchestrator.upload(clip(size=1024))
        self.assertEqual(asset.title, "Video 3/7/2025")

    async def test_private_visibility_is_kept(self):
        asset = await self.orchestrator().upload(clip(size=1024), "Mine", "only me", Visibility.PRIVATE)
        self.assertEqual(asset.visibility, Visibility.PRIVATE)
        self.assertEqual(asset.title, "Mine")
        self.assertEqual(asset.description, "only me")

    async def test_requires_user(self):
        with self.assertRaises(AuthenticationError):
            await self.orchestrator(user_id=None).upload(clip())
        self.assertEqual(self.objects.keys, [])
        self.assertEqual(self.records.records, [])
        self.assertEqual(self.updates, [])

    async def test_thumbnail_failure(self):
        thumbnailer = FakeThumbnailer(error=ThumbnailError("Failed to generate thumbnail"))
        orchestrator = self.orchestrator(thumbnailer=thumbnailer)

        with self.assertRaises(ThumbnailError):
            await orchestrator.upload(clip())

        self.assertEqual(orchestrator.session.stage, UploadStage.FAILED)
        self.assertEqual(orchestrator.session.error_message, "Failed to generate thumbnail")
        self.assertEqual(orchestrator.session.progress_percent, 60)
        self.assertNotIn(100, [s.progress_percent for s in self.updates])
        # the media object already stored is left in place
        self.assertEqual(len(self.objects.objects), 1)
        self.assertEqual(self.records.records, [])

    async def test_record_failure(self):
        self.records.fail = True
        orchestrator = self.orchestrator()

        with self.assertRaises(NetworkError):
            await orchestrator.upload(clip())

        self.assertEqual(max(s.progress_percent for s in self.updates), 90)
        self.assertEqual(orchestrator.session.stage, UploadStage.FAILED)
        self.assertEqual(len(self.objects.objects), 2)

    async def test_media_upload_failure(self):
        self.objects.fail_on = "/videos/"
        orchestrator = self.orchestrator()

        with self.assertRaises(NetworkError):
            await orchestrator.upload(clip())

        self.assertEqual(orchestrator.session.progress_percent, 30)
        self.assertEqual(self.thumbnailer.calls, 0)

    async def test_retry_after_failure(self):
        self.records.fail = True
        orchestrator = self.orchestrator()
        with self.assertRaises(NetworkError):
            await orchestrator.upload(clip())

        self.records.fail = False
        asset = await orchestrator.upload(clip())
        self.assertEqual(orchestrator.session.stage, UploadStage.COMPLETE)
        self.assertEqual(self.records.records, [asset])

    async def test_dispose_stops_updates(self):
        gate = asyncio.Event()
        self.objects.gate = gate
        orchestrator = self.orchestrator()

        task = asyncio.create_task(orchestrator.upload(clip()))
        await asyncio.sleep(0)
        seen = len(self.updates)
        orchestrator.dispose()
        gate.set()
        asset = await task

        self.assertEqual(len(self.updates), seen)
        self.assertEqual(self.records.records, [asset])
        self.assertNotEqual(orchestrator.session.stage, UploadStage.COMPLETE)

    async def test_concurrent_upload_rejected(self):
        gate = asyncio.Event()
        self.objects.gate = gate
        orchestrator = self.orchestrator()

        task = asyncio.create_task(orchestrator.upload(clip()))
        await asyncio.sleep(0)
        self.assertTrue(orchestrator.is_uploading)
        with self.assertRaises(UploadInProgressError):
            await orchestrator.upload(clip())

        gate.set()
        await task
        self.assertEqual(len(self.records.records), 1)

    async def test_cancelled_upload_can_be_retried(self):
        self.objects.gate = asyncio.Event()
        orchestrator = self.orchestrator()

        task = asyncio.create_task(orchestrator.upload(clip()))
        await asyncio.sleep(0)
        self.assertEqual(orchestrator.session.stage, UploadStage.UPLOADING_MEDIA)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual(orchestrator.session.stage, UploadStage.FAILED)
        self.assertEqual(orchestrator.session.error_message, "Upload cancelled")
        self.assertEqual(orchestrator.session.progress_percent, 30)
        self.assertFalse(orchestrator.is_uploading)
        self.assertEqual(self.updates[-1].stage, UploadStage.FAILED)

        self.objects.gate = None
        asset = await orchestrator.upload(clip())
        self.assertEqual(orchestrator.session.stage, UploadStage.COMPLETE)
        self.assertEqual(self.records.records, [asset])


class TestServiceUpload(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.objects = MemoryObjectStore()
        self.records = MemoryRecordStore()

    def service(self, user_id="u1", prober=None) -> ClipFeedService:
        return ClipFeedService(
            object_store=self.objects,
            record_store=self.records,
            identity=StaticIdentity(user_id),
            prober=prober or FakeProber(duration=20.0),
            thumbnailer=FakeThumbnailer(),
        )

    async def test_upload_strips_metadata(self):
        asset = await self.service().upload_video(clip(size=1024), "  Beach day  ", "   ")
        self.assertEqual(asset.title, "Beach day")
        self.assertEqual(asset.description, "")

    async def test_rejected_file_never_uploaded(self):
        with self.assertRaises(ValidationError) as ctx:
            await self.service(prober=FakeProber(duration=90.0)).upload_video(clip(size=1024))
        self.assertIn("Video too long", ctx.exception.errors[0])
        self.assertEqual(self.objects.keys, [])

    async def test_metadata_errors_reported_with_file_errors(self):
        media = MediaFile(name="notes.txt", content_type="text/plain", data=b"x")
        with self.assertRaises(ValidationError) as ctx:
            await self.service().upload_video(media, "t" * 101)
        self.assertEqual(len(ctx.exception.errors), 2)
        self.assertIn("Unsupported file format", ctx.exception.errors[0])
        self.assertIn("Title too long", ctx.exception.errors[1])

    async def test_signed_out_upload(self):
        prober = FakeProber()
        with self.assertRaises(AuthenticationError):
            await self.service(user_id=None, prober=prober).upload_video(clip(size=1024))
        self.assertEqual(prober.calls, 0)


if __name__ == "__main__":
    unittest.main()
