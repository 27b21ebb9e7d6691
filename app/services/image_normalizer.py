"""
Image normalization for uploaded photos.

Two policies:
- square (album covers): center-crop to a square and search the JPEG
  quality that lands near a target size.
- bounded (memory card photos): fit inside a max box without upscaling and
  step the quality down until the file fits a size budget.

Both are CPU bound; call them through `run_in_threadpool` from async code.
"""
import base64
import io
import logging
import time
from dataclasses import dataclass
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from app.utils.prometheus_metrics import (
    image_compression_duration_seconds,
    image_compression_output_bytes,
)

logger = logging.getLogger("app.image")

JPEG_CONTENT_TYPE = "image/jpeg"

# Policy A
SQUARE_MIN_QUALITY = 0.10
SQUARE_MAX_QUALITY = 0.95
SQUARE_MAX_ITERATIONS = 10
SQUARE_TOLERANCE_KB = 5

# Policy B: 품질 90% → 10% (정수 퍼센트)
BOUNDED_QUALITY_STEPS = tuple(range(90, 0, -10))

SQUARE_ENOUGH_RATIO = 0.9


class ImageProcessingError(Exception):
    """Base error for image normalization."""


class ImageDecodeError(ImageProcessingError):
    """The uploaded bytes are not a decodable image."""


class ImageEncodeError(ImageProcessingError):
    """Re-encoding the image failed."""


@dataclass
class CompressedImage:
    content: bytes
    width: int
    height: int
    quality: float
    content_type: str = JPEG_CONTENT_TYPE
    filename: str = "image.jpg"

    @property
    def size_kb(self) -> float:
        return len(self.content) / 1024

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


def _load_rgb(data: bytes) -> Image.Image:
    """
    Decode bytes, apply EXIF orientation and flatten to RGB.
    Canvases over Pillow's pixel limit count as undecodable.
    """
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            im = ImageOps.exif_transpose(im)
            if im.mode == "RGBA":
                bg = Image.new("RGB", im.size, (255, 255, 255))
                bg.paste(im, mask=im.split()[3])
                return bg
            if im.mode != "RGB":
                return im.convert("RGB")
            return im.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError("Unable to decode image") from e


def _encode_jpeg(im: Image.Image, quality: float) -> bytes:
    buffer = io.BytesIO()
    try:
        im.save(buffer, "JPEG", quality=int(round(quality * 100)), optimize=True)
    except (OSError, ValueError) as e:
        raise ImageEncodeError("Unable to encode image") from e
    return buffer.getvalue()


def center_square_box(width: int, height: int) -> Tuple[int, int, int, int]:
    """
    Crop box (left, upper, right, lower) for the centered square of side
    min(width, height).
    """
    side = min(width, height)
    left = (width - side) // 2
    top = (height - side) // 2
    return left, top, left + side, top + side


def bounded_dimensions(
    width: int,
    height: int,
    max_width: int,
    max_height: int,
) -> Tuple[int, int]:
    """
    Scale (width, height) to fit inside (max_width, max_height), keeping the
    aspect ratio. Never upscales.
    """
    ratio = min(max_width / width, max_height / height, 1.0)
    if ratio >= 1.0:
        return width, height
    new_width = min(max_width, max(1, round(width * ratio)))
    new_height = min(max_height, max(1, round(height * ratio)))
    return new_width, new_height


def compress_square(data: bytes, target_size_kb: int = 75) -> CompressedImage:
    """
    Policy A: square crop plus quality search toward a target size.

    Args:
        data: Raw uploaded image bytes
        target_size_kb: Desired output size in KB

    Returns:
        CompressedImage (JPEG). If no iteration lands within the tolerance the
        last attempt is returned as is.

    Raises:
        ImageDecodeError: input is not an image
        ImageEncodeError: JPEG encoding failed
    """
    started = time.perf_counter()
    im = _load_rgb(data)
    width, height = im.size

    if width != height:
        # 비정방형 입력은 경고만 (크롭으로 처리)
        logger.warning(
            "Image is not square, cropping to center",
            extra={"event": "image_compress", "width": width, "height": height},
        )

    square = im.crop(center_square_box(width, height))
    side = square.size[0]

    low, high = SQUARE_MIN_QUALITY, SQUARE_MAX_QUALITY
    quality = (low + high) / 2
    content = b""
    for _ in range(SQUARE_MAX_ITERATIONS):
        quality = (low + high) / 2
        content = _encode_jpeg(square, quality)
        size_kb = len(content) / 1024

        if abs(size_kb - target_size_kb) < SQUARE_TOLERANCE_KB:
            break
        if size_kb > target_size_kb:
            high = quality
        else:
            low = quality

    image_compression_duration_seconds.labels(policy="square").observe(
        time.perf_counter() - started
    )
    image_compression_output_bytes.labels(policy="square").observe(len(content))
    return CompressedImage(
        content=content,
        width=side,
        height=side,
        quality=quality,
        filename="cover.jpg",
    )


def compress_bounded(
    data: bytes,
    filename: str,
    max_size_kb: int = 400,
    max_width: int = 1200,
    max_height: int = 1200,
) -> CompressedImage:
    """
    Policy B: fit inside a bounding box, then lower the quality until the
    output fits `max_size_kb`. The lowest quality step is accepted whatever
    its size.

    Raises:
        ImageDecodeError: input is not an image
        ImageEncodeError: JPEG encoding failed
    """
    started = time.perf_counter()
    im = _load_rgb(data)
    width, height = bounded_dimensions(im.size[0], im.size[1], max_width, max_height)
    if (width, height) != im.size:
        im = im.resize((width, height), Image.LANCZOS)

    max_bytes = max_size_kb * 1024
    content = b""
    percent = BOUNDED_QUALITY_STEPS[-1]
    for percent in BOUNDED_QUALITY_STEPS:
        content = _encode_jpeg(im, percent / 100)
        if len(content) <= max_bytes or percent <= BOUNDED_QUALITY_STEPS[-1]:
            break

    image_compression_duration_seconds.labels(policy="bounded").observe(
        time.perf_counter() - started
    )
    image_compression_output_bytes.labels(policy="bounded").observe(len(content))
    return CompressedImage(
        content=content,
        width=width,
        height=height,
        quality=percent / 100,
        filename=filename or "image.jpg",
    )


def is_image_square(width: int, height: int) -> bool:
    """Aspect ratio of at least 0.9 counts as square."""
    if width <= 0 or height <= 0:
        return False
    return min(width, height) / max(width, height) >= SQUARE_ENOUGH_RATIO


def format_file_size(num_bytes: int) -> str:
    """Human readable size: "0 Bytes", "512 Bytes", "12.5 KB", "1.2 MB"."""
    if num_bytes <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    # 소수점 2자리까지, 불필요한 0 제거
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"
