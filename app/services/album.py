"""
Album service for the gallery section.
"""
import asyncio
from typing import List, Optional

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_context
from app.models.album import Album
from app.schemas.album import AlbumUpdate
from app.utils.logger import log_info
from app.utils.prometheus_metrics import content_seeded_total

# 처음 설치 시 / 초기화 시 들어가는 기본 앨범
DEFAULT_ALBUMS = [
    {
        "title": "Engagement Ceremony",
        "description": "The beautiful beginning of our journey",
        "cover_image": "/images/wedding-couple1.png",
        "google_photos_link": "https://photos.google.com/your-engagement-album",
    },
    {
        "title": "Pre-Wedding Shoot",
        "description": "Captured moments of love and laughter",
        "cover_image": "/images/wedding-couple2.png",
        "google_photos_link": "https://photos.google.com/your-prewedding-album",
    },
    {
        "title": "Haldi & Mehendi",
        "description": "Colors of tradition and celebration",
        "cover_image": "/images/wedding-couple3.png",
        "google_photos_link": "https://photos.google.com/your-haldi-album",
    },
    {
        "title": "Wedding Reception",
        "description": "An evening of love and blessings",
        "cover_image": "/images/wedding-couple4.png",
        "google_photos_link": "https://photos.google.com/your-reception-album",
    },
]

# 동시에 들어온 첫 조회가 기본 데이터를 두 번 넣지 않도록 직렬화
_seed_lock = asyncio.Lock()


def build_default_albums() -> List[Album]:
    """Fresh Album rows for the default set (orders 0..n-1)."""
    return [
        Album(order=index, is_default=True, **fields)
        for index, fields in enumerate(DEFAULT_ALBUMS)
    ]


async def ensure_default_albums() -> bool:
    """
    Insert the default albums if the collection is empty.
    Runs in its own committed transaction; safe to call repeatedly.

    Returns:
        True if the defaults were inserted
    """
    async with _seed_lock:
        async with get_db_context() as session:
            count = await session.scalar(select(func.count(Album.id)))
            if count:
                return False
            session.add_all(build_default_albums())
            await session.flush()

    content_seeded_total.labels(resource="album", reason="empty").inc()
    log_info("Default albums seeded", event="seed", resource="album")
    return True


class AlbumService:
    """
    Service for handling album operations.
    Albums are never created or deleted one by one; the set is edited in
    place or reset to the defaults.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_albums(self) -> List[Album]:
        """
        Get all albums sorted by display order.
        An empty collection is filled with the defaults first.
        """
        await ensure_default_albums()
        result = await self.db.execute(select(Album).order_by(Album.order, Album.created_at))
        return list(result.scalars().all())

    async def get_album_by_id(self, album_id: str) -> Optional[Album]:
        result = await self.db.execute(select(Album).where(Album.id == album_id))
        return result.scalar_one_or_none()

    async def count_albums(self) -> int:
        return await self.db.scalar(select(func.count(Album.id))) or 0

    async def update_album(self, album: Album, update_data: AlbumUpdate) -> Album:
        """
        Replace the editable fields of an album.

        Args:
            album: Album to update
            update_data: New title, description and link; cover only if given

        Returns:
            Updated Album model
        """
        album.title = update_data.title
        album.description = update_data.description
        album.google_photos_link = update_data.google_photos_link
        if update_data.cover_image:
            album.cover_image = update_data.cover_image

        await self.db.flush()
        await self.db.refresh(album)
        return album

    async def update_cover(self, album: Album, cover_image: str) -> Album:
        """Store a new cover (compressed data URI) on an album."""
        album.cover_image = cover_image
        await self.db.flush()
        await self.db.refresh(album)
        return album

    async def reset_to_default(self) -> List[Album]:
        """
        Delete every album and re-insert the defaults.
        Both steps run in the request transaction.
        """
        await self.db.execute(delete(Album))
        albums = build_default_albums()
        self.db.add_all(albums)
        await self.db.flush()

        content_seeded_total.labels(resource="album", reason="reset").inc()
        log_info("Albums reset to default", event="seed", resource="album")
        return sorted(albums, key=lambda a: a.order)
