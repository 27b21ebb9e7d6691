"""
Upload helpers shared by the album cover and memory card endpoints.
"""
import mimetypes
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from app.config import get_settings

# Allowed content types for image upload (Pillow로 디코딩 가능한 형식만)
ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
}

# File extension to content type mapping
EXTENSION_TO_CONTENT_TYPE = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}


def guess_content_type(filename: str, provided_type: Optional[str] = None) -> Optional[str]:
    """
    Guess content type from filename or provided type.

    Args:
        filename: The filename
        provided_type: The content type provided by the client

    Returns:
        The content type, or the provided type if it cannot be determined
    """
    if provided_type and provided_type in ALLOWED_CONTENT_TYPES:
        return provided_type

    if filename:
        ext = filename.lower()
        for ext_key, content_type in EXTENSION_TO_CONTENT_TYPE.items():
            if ext.endswith(ext_key):
                return content_type

        guessed_type, _ = mimetypes.guess_type(filename)
        if guessed_type and guessed_type in ALLOWED_CONTENT_TYPES:
            return guessed_type

    return provided_type


async def read_image_upload(file: UploadFile, allow_empty: bool = False) -> bytes:
    """
    Read an uploaded image and check its size and declared type.
    Whether the bytes really decode is checked by the image normalizer.

    Args:
        file: Uploaded file
        allow_empty: Return b"" for an empty part instead of failing
            (browsers send an empty part when no file was chosen)

    Raises:
        HTTPException: 413 if larger than MAX_UPLOAD_SIZE_MB,
            400 if empty or not an allowed image type
    """
    max_size = get_settings().max_upload_size_mb * 1024 * 1024
    content = await file.read()

    if len(content) > max_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {max_size // (1024 * 1024)}MB",
        )
    if not content:
        if allow_empty:
            return content
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    content_type = guess_content_type(file.filename or "", file.content_type)
    # 브라우저가 타입을 안 보내는 경우(application/octet-stream)는 디코딩 단계에서 판단
    if content_type and content_type.startswith("image/") and content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed. Allowed types: JPEG, PNG, GIF, WebP, BMP. "
                   f"Provided: {file.content_type or 'unknown'}",
        )
    return content
