"""
Services package.
Contains business logic and external service integrations.
"""
from app.services.album import AlbumService
from app.services.timeline import TimelineService
from app.services.memory_card import MemoryCardService
from app.services.image_host import ImageHostService

__all__ = [
    "AlbumService",
    "TimelineService",
    "MemoryCardService",
    "ImageHostService",
]
