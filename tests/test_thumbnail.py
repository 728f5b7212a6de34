import asyncio
import io
import threading
import unittest
from unittest.mock import AsyncMock, patch

from PIL import Image

from clipfeed.exceptions import CanvasUnavailableError, ThumbnailError, ThumbnailTimeoutError
from clipfeed.ingestion.processor import ToolError, VideoMetadata
from clipfeed.ingestion.source import MediaFile
from clipfeed.ingestion.thumbnail import FFmpegThumbnailExtractor, clamp_seek, fit_within


def clip() -> MediaFile:
    return MediaFile(name="clip.mp4", content_type="video/mp4", data=b"frames")


def png_frame(width: int, height: int) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(out, format="PNG")
    return out.getvalue()


class TestFitWithin(unittest.TestCase):
    def test_landscape_hd(self):
        self.assertEqual(fit_within(1920, 1080, 1280), (1280, 720))

    def test_portrait_hd(self):
        self.assertEqual(fit_within(1080, 1920, 1280), (720, 1280))

    def test_small_source_unchanged(self):
        self.assertEqual(fit_within(640, 480, 1280), (640, 480))

    def test_extreme_aspect_keeps_one_pixel(self):
        self.assertEqual(fit_within(5000, 3, 1280), (1280, 1))

    def test_bounds_and_aspect_for_many_sizes(self):
        for width in (320, 640, 1279, 1280, 1281, 1919, 3840, 7680):
            for height in (240, 480, 720, 1080, 1281, 2160, 4321):
                w, h = fit_within(width, height, 1280)
                self.assertLessEqual(max(w, h), 1280)
                # off by at most one pixel on the long side
                self.assertLessEqual(abs(w * height - h * width), max(width, height), (width, height, w, h))

    def test_rejects_empty_frame(self):
        with self.assertRaises(ValueError):
            fit_within(0, 1080, 1280)


class TestClampSeek(unittest.TestCase):
    def test_within_range(self):
        self.assertEqual(clamp_seek(1.0, 10.0), 1.0)

    def test_past_end(self):
        self.assertAlmostEqual(clamp_seek(1.0, 0.5), 0.4)

    def test_negative(self):
        self.assertEqual(clamp_seek(-3.0, 10.0), 0.0)

    def test_very_short_clip(self):
        self.assertEqual(clamp_seek(1.0, 0.05), 0.0)


@patch("clipfeed.ingestion.thumbnail.shutil.which", return_value="/usr/bin/ffmpeg")
class TestThumbnailExtractor(unittest.IsolatedAsyncioTestCase):
    async def test_extracts_downscaled_jpeg(self, _which):
        meta = AsyncMock(return_value=VideoMetadata(width=1920, height=1080, duration=0.5))
        grab = AsyncMock(return_value=png_frame(192, 108))
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta), \
                patch("clipfeed.ingestion.thumbnail.grab_frame", grab):
            thumb = await FFmpegThumbnailExtractor(timeout=5).extract(clip())

        self.assertEqual((thumb.width, thumb.height), (1280, 720))
        self.assertEqual(thumb.source_duration, 0.5)
        self.assertEqual(thumb.content_type, "image/jpeg")
        with Image.open(io.BytesIO(thumb.data)) as image:
            self.assertEqual(image.format, "JPEG")
            self.assertEqual(image.size, (1280, 720))

        path, position = grab.await_args.args
        self.assertAlmostEqual(position, 0.4)
        self.assertFalse(path.exists())

    async def test_encodes_off_the_event_loop(self, _which):
        threads = []

        def fake_encode(frame, size, quality):
            threads.append(threading.get_ident())
            return b"\xff\xd8jpeg"

        meta = AsyncMock(return_value=VideoMetadata(width=640, height=360, duration=5.0))
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta), \
                patch("clipfeed.ingestion.thumbnail.grab_frame", AsyncMock(return_value=b"png")), \
                patch("clipfeed.ingestion.thumbnail.encode_jpeg", side_effect=fake_encode):
            thumb = await FFmpegThumbnailExtractor(timeout=5).extract(clip())

        self.assertEqual(thumb.data, b"\xff\xd8jpeg")
        self.assertEqual(len(threads), 1)
        self.assertNotEqual(threads[0], threading.get_ident())

    async def test_explicit_seek(self, _which):
        meta = AsyncMock(return_value=VideoMetadata(width=640, height=360, duration=30.0))
        grab = AsyncMock(return_value=png_frame(640, 360))
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta), \
                patch("clipfeed.ingestion.thumbnail.grab_frame", grab):
            thumb = await FFmpegThumbnailExtractor(timeout=5).extract(clip(), seek_seconds=12.0)

        self.assertEqual((thumb.width, thumb.height), (640, 360))
        self.assertEqual(grab.await_args.args[1], 12.0)

    async def test_no_rasterizer(self, which):
        which.return_value = None
        meta = AsyncMock()
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta):
            with self.assertRaises(CanvasUnavailableError):
                await FFmpegThumbnailExtractor(timeout=5).extract(clip())
        meta.assert_not_awaited()

    async def test_timeout(self, _which):
        seen = []

        async def slow_meta(path):
            seen.append(path)
            await asyncio.sleep(10)

        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", side_effect=slow_meta):
            with self.assertRaises(ThumbnailTimeoutError):
                await FFmpegThumbnailExtractor(timeout=0.05).extract(clip())
        self.assertFalse(seen[0].exists())

    async def test_decode_failure(self, _which):
        meta = AsyncMock(side_effect=ToolError("Invalid data found when processing input"))
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta):
            with self.assertRaises(ThumbnailError) as ctx:
                await FFmpegThumbnailExtractor(timeout=5).extract(clip())
        self.assertNotIsInstance(ctx.exception, ThumbnailTimeoutError)

    async def test_empty_frame(self, _which):
        meta = AsyncMock(return_value=VideoMetadata(width=640, height=360, duration=5.0))
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta), \
                patch("clipfeed.ingestion.thumbnail.grab_frame", AsyncMock(return_value=b"")):
            with self.assertRaises(ThumbnailError):
                await FFmpegThumbnailExtractor(timeout=5).extract(clip())

    async def test_undecodable_frame(self, _which):
        meta = AsyncMock(return_value=VideoMetadata(width=640, height=360, duration=5.0))
        with patch("clipfeed.ingestion.thumbnail.read_video_metadata", meta), \
                patch("clipfeed.ingestion.thumbnail.grab_frame", AsyncMock(return_value=b"garbage")):
            with self.assertRaises(ThumbnailError):
                await FFmpegThumbnailExtractor(timeout=5).extract(clip())


if __name__ == "__main__":
    unittest.main()
