import base64
import io
import random
import unittest
from unittest import mock

from tests.support import make_image_bytes

from PIL import Image

from app.services.image_normalizer import (
    CompressedImage,
    ImageDecodeError,
    bounded_dimensions,
    center_square_box,
    compress_bounded,
    compress_square,
    format_file_size,
    is_image_square,
    _encode_jpeg,
    _load_rgb,
)


def _decoded_size(content: bytes):
    with Image.open(io.BytesIO(content)) as im:
        return im.size, im.format


class SquareCompressionTests(unittest.TestCase):
    def test_center_square_box_uses_shorter_side(self):
        self.assertEqual(center_square_box(400, 300), (50, 0, 350, 300))
        self.assertEqual(center_square_box(300, 500), (0, 100, 300, 400))
        self.assertEqual(center_square_box(256, 256), (0, 0, 256, 256))

    def test_landscape_input_is_cropped_to_square_jpeg(self):
        result = compress_square(make_image_bytes(640, 480, noise=True), target_size_kb=75)

        self.assertEqual((result.width, result.height), (480, 480))
        size, fmt = _decoded_size(result.content)
        self.assertEqual(size, (480, 480))
        self.assertEqual(fmt, "JPEG")
        self.assertEqual(result.content_type, "image/jpeg")

    def test_quality_stays_inside_search_range(self):
        result = compress_square(make_image_bytes(300, 600, noise=True), target_size_kb=20)

        self.assertGreaterEqual(result.quality, 0.10)
        self.assertLessEqual(result.quality, 0.95)

    def test_data_uri_round_trips_content(self):
        result = compress_square(make_image_bytes(120, 120), target_size_kb=75)

        prefix = "data:image/jpeg;base64,"
        self.assertTrue(result.data_uri.startswith(prefix))
        self.assertEqual(base64.b64decode(result.data_uri[len(prefix):]), result.content)

    def test_undecodable_bytes_raise_decode_error(self):
        with self.assertRaises(ImageDecodeError):
            compress_square(b"definitely not an image")

    def test_reachable_target_lands_within_tolerance(self):
        rng = random.Random(7)
        noise = bytes(rng.randrange(256) for _ in range(48 * 48 * 3))
        tile = Image.frombytes("RGB", (48, 48), noise)
        buffer = io.BytesIO()
        tile.resize((480, 480), Image.BICUBIC).save(buffer, "PNG")
        data = buffer.getvalue()
        # 이진 탐색 두 번째 중간값(0.3125)에서의 크기를 목표로
        target_kb = len(_encode_jpeg(_load_rgb(data), 0.3125)) / 1024

        result = compress_square(data, target_size_kb=target_kb)

        self.assertLess(abs(result.size_kb - target_kb), 5)

    def test_oversized_canvas_is_a_decode_error(self):
        data = make_image_bytes(100, 100)

        with mock.patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            with self.assertRaises(ImageDecodeError):
                compress_square(data)
            with self.assertRaises(ImageDecodeError):
                compress_bounded(data, "huge.png")


class BoundedCompressionTests(unittest.TestCase):
    def test_bounded_dimensions_keep_aspect_ratio(self):
        self.assertEqual(bounded_dimensions(3000, 1000, 1200, 1200), (1200, 400))
        self.assertEqual(bounded_dimensions(1000, 3000, 1200, 1200), (400, 1200))
        self.assertEqual(bounded_dimensions(2400, 2400, 1200, 1000), (1000, 1000))

    def test_bounded_dimensions_never_upscale(self):
        self.assertEqual(bounded_dimensions(800, 600, 1200, 1200), (800, 600))

    def test_large_photo_fits_bounds_and_size_budget(self):
        result = compress_bounded(
            make_image_bytes(2000, 1500, noise=True),
            "party.png",
            max_size_kb=400,
        )

        self.assertLessEqual(result.width, 1200)
        self.assertLessEqual(result.height, 1200)
        self.assertEqual((result.width, result.height), (1200, 900))
        self.assertTrue(len(result.content) <= 400 * 1024 or result.quality == 0.1)
        self.assertEqual(result.filename, "party.png")
        self.assertEqual(result.content_type, "image/jpeg")

    def test_small_budget_falls_back_to_lowest_quality(self):
        result = compress_bounded(
            make_image_bytes(600, 600, noise=True),
            "noise.png",
            max_size_kb=1,
        )

        self.assertEqual(result.quality, 0.1)
        self.assertGreater(len(result.content), 1024)

    def test_easy_image_accepts_first_quality_step(self):
        result = compress_bounded(make_image_bytes(200, 100), "flat.png")

        self.assertEqual(result.quality, 0.9)
        self.assertEqual((result.width, result.height), (200, 100))

    def test_undecodable_bytes_raise_decode_error(self):
        with self.assertRaises(ImageDecodeError):
            compress_bounded(b"\x00\x01\x02", "broken.jpg")


class HelperTests(unittest.TestCase):
    def test_is_image_square_tolerates_ten_percent(self):
        self.assertTrue(is_image_square(100, 100))
        self.assertTrue(is_image_square(100, 90))
        self.assertFalse(is_image_square(100, 89))
        self.assertFalse(is_image_square(0, 100))

    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), "0 Bytes")
        self.assertEqual(format_file_size(512), "512 Bytes")
        self.assertEqual(format_file_size(1024), "1 KB")
        self.assertEqual(format_file_size(12800), "12.5 KB")
        self.assertEqual(format_file_size(5 * 1024 * 1024), "5 MB")

    def test_size_kb(self):
        image = CompressedImage(content=b"x" * 2048, width=1, height=1, quality=0.5)
        self.assertEqual(image.size_kb, 2.0)


if __name__ == "__main__":
    unittest.main()
