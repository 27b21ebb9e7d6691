"""
Pydantic schemas package.
All schemas are exported here for easy import.
"""
from app.schemas.common import CamelModel, MessageResponse
from app.schemas.auth import (
    AdminSessionState,
    AdminLogin,
    AdminTokenPayload,
    LoginResponse,
    SessionResponse,
)
from app.schemas.album import (
    AlbumUpdate,
    AlbumResponse,
    AlbumEnvelope,
    AlbumListResponse,
)
from app.schemas.timeline import (
    TimelineEventCreate,
    TimelineEventUpdate,
    TimelineOrderItem,
    TimelineReorder,
    TimelineEventResponse,
    TimelineEventEnvelope,
    TimelineListResponse,
)
from app.schemas.memory_card import (
    MemoryCardResponse,
    MemoryCardCreated,
    MemoryCardEnvelope,
    MemoryCardListResponse,
)

__all__ = [
    "CamelModel",
    "MessageResponse",
    # Auth schemas
    "AdminSessionState",
    "AdminLogin",
    "AdminTokenPayload",
    "LoginResponse",
    "SessionResponse",
    # Album schemas
    "AlbumUpdate",
    "AlbumResponse",
    "AlbumEnvelope",
    "AlbumListResponse",
    # Timeline schemas
    "TimelineEventCreate",
    "TimelineEventUpdate",
    "TimelineOrderItem",
    "TimelineReorder",
    "TimelineEventResponse",
    "TimelineEventEnvelope",
    "TimelineListResponse",
    # Memory card schemas
    "MemoryCardResponse",
    "MemoryCardCreated",
    "MemoryCardEnvelope",
    "MemoryCardListResponse",
]
