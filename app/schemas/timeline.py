"""
Timeline-related Pydantic schemas for request/response validation.
"""
from typing import List, Optional

from pydantic import ConfigDict, Field

from app.models.timeline_event import TimelineIcon
from app.schemas.common import CamelModel


class TimelineEventBase(CamelModel):
    """Base schema with common timeline event attributes."""

    model_config = ConfigDict(str_strip_whitespace=True)

    date: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    icon: TimelineIcon = TimelineIcon.HEART


class TimelineEventCreate(TimelineEventBase):
    """Schema for timeline event creation."""

    pass


class TimelineEventUpdate(TimelineEventBase):
    """Schema for editing a timeline event (full-field replace)."""

    pass


class TimelineOrderItem(CamelModel):
    """One {id, order} pair of a reorder request."""

    id: str = Field(..., min_length=1)
    order: int = Field(..., ge=0)


class TimelineReorder(CamelModel):
    """Schema for reordering timeline events."""

    events: List[TimelineOrderItem]


class TimelineEventResponse(CamelModel):
    """Schema for timeline event response."""

    id: str
    date: str
    title: str
    description: str
    icon: TimelineIcon
    order: int
    is_default: bool


class TimelineEventEnvelope(CamelModel):
    """Single timeline event response."""

    success: bool = True
    event: TimelineEventResponse


class TimelineListResponse(CamelModel):
    """Timeline listing / reset response."""

    success: bool = True
    message: Optional[str] = None
    events: List[TimelineEventResponse] = []
