"""
Albums router for the gallery section.
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies.auth import get_current_admin
from app.models.album import Album
from app.schemas.album import (
    AlbumEnvelope,
    AlbumListResponse,
    AlbumResponse,
    AlbumUpdate,
)
from app.schemas.auth import AdminTokenPayload
from app.services.album import AlbumService
from app.services.image_normalizer import (
    ImageDecodeError,
    ImageEncodeError,
    compress_square,
)
from app.utils.logger import log_info, log_warning
from app.utils.prometheus_metrics import content_operations_total
from app.utils.uploads import read_image_upload

router = APIRouter(prefix="/api/albums", tags=["Albums"])


async def _get_album_or_404(album_service: AlbumService, album_id: str) -> Album:
    album = await album_service.get_album_by_id(album_id)
    if not album:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Album not found",
        )
    return album


@router.get(
    "",
    response_model=AlbumListResponse,
    summary="List albums",
)
async def list_albums(
    db: AsyncSession = Depends(get_db),
) -> AlbumListResponse:
    """
    List all albums sorted by display order.
    The default albums are created on first access if there are none.
    """
    albums = await AlbumService(db).list_albums()
    return AlbumListResponse(
        albums=[AlbumResponse.model_validate(album) for album in albums],
    )


@router.put(
    "/{album_id}",
    response_model=AlbumEnvelope,
    summary="Update an album",
)
async def update_album(
    album_id: str,
    update_data: AlbumUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> AlbumEnvelope:
    """
    Replace an album's title, description and Google Photos link.

    - **coverImage**: only replaced when provided
    """
    album_service = AlbumService(db)
    album = await _get_album_or_404(album_service, album_id)
    album = await album_service.update_album(album, update_data)

    content_operations_total.labels(resource="album", operation="update", result="success").inc()
    log_info("Album updated", event="album", album_id=album.id)
    return AlbumEnvelope(album=AlbumResponse.model_validate(album))


@router.post(
    "/{album_id}/cover",
    response_model=AlbumEnvelope,
    summary="Upload an album cover",
)
async def upload_album_cover(
    album_id: str,
    file: UploadFile = File(..., description="Cover image"),
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> AlbumEnvelope:
    """
    Upload a new cover image.

    The image is center-cropped to a square and compressed toward
    ALBUM_COVER_TARGET_KB, then stored inline as a data URI.
    """
    album_service = AlbumService(db)
    album = await _get_album_or_404(album_service, album_id)
    content = await read_image_upload(file)

    try:
        compressed = await run_in_threadpool(
            compress_square, content, get_settings().album_cover_target_kb
        )
    except ImageDecodeError:
        content_operations_total.labels(resource="album", operation="cover", result="failure").inc()
        log_warning("Album cover is not a valid image", event="album", album_id=album_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid image file",
        )
    except ImageEncodeError:
        content_operations_total.labels(resource="album", operation="cover", result="failure").inc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process image",
        )

    album = await album_service.update_cover(album, compressed.data_uri)
    content_operations_total.labels(resource="album", operation="cover", result="success").inc()
    log_info(
        "Album cover updated",
        event="album",
        album_id=album.id,
        size_kb=round(compressed.size_kb, 1),
    )
    return AlbumEnvelope(album=AlbumResponse.model_validate(album))


@router.delete(
    "",
    response_model=AlbumListResponse,
    summary="Reset albums to default",
)
async def reset_albums(
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> AlbumListResponse:
    """
    Delete every album and restore the four default albums.
    """
    albums = await AlbumService(db).reset_to_default()
    content_operations_total.labels(resource="album", operation="reset", result="success").inc()
    return AlbumListResponse(
        message="Albums reset to default",
        albums=[AlbumResponse.model_validate(album) for album in albums],
    )
