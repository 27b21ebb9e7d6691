"""
Album-related Pydantic schemas for request/response validation.
"""
from typing import List, Optional

from pydantic import ConfigDict, Field

from app.schemas.common import CamelModel


class AlbumUpdate(CamelModel):
    """
    Schema for updating an album (full-field replace).
    `cover_image` is only replaced when provided.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    google_photos_link: str = Field(..., min_length=1, max_length=1000)
    cover_image: Optional[str] = None


class AlbumResponse(CamelModel):
    """Schema for album response."""

    id: str
    title: str
    description: str
    cover_image: str
    google_photos_link: str
    order: int
    is_default: bool


class AlbumEnvelope(CamelModel):
    """Single album response."""

    success: bool = True
    album: AlbumResponse


class AlbumListResponse(CamelModel):
    """Album listing / reset response."""

    success: bool = True
    message: Optional[str] = None
    albums: List[AlbumResponse] = []
