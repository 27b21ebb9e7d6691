"""
Memory card Pydantic schemas for request/response validation.
Card creation is multipart (photo upload), so there is no request body schema.
"""
from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel


class MemoryCardResponse(CamelModel):
    """
    Schema for memory card response.
    The device fingerprint is never returned.
    """

    id: str
    serial_number: int
    name: str
    message: str
    photo: Optional[str] = None
    timestamp: datetime
    is_owner: bool = False


class MemoryCardCreated(CamelModel):
    """Response for a newly created card, with its owner capability token."""

    success: bool = True
    card: MemoryCardResponse
    owner_token: str


class MemoryCardEnvelope(CamelModel):
    """Single memory card response."""

    success: bool = True
    card: MemoryCardResponse


class MemoryCardListResponse(CamelModel):
    """Memory card wall listing."""

    success: bool = True
    cards: List[MemoryCardResponse] = []
    total: int = 0
