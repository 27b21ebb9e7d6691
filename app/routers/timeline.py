"""
Timeline router for the love story section.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import get_current_admin
from app.models.timeline_event import TimelineEvent
from app.schemas.auth import AdminTokenPayload
from app.schemas.common import MessageResponse
from app.schemas.timeline import (
    TimelineEventCreate,
    TimelineEventEnvelope,
    TimelineEventResponse,
    TimelineEventUpdate,
    TimelineListResponse,
    TimelineReorder,
)
from app.services.timeline import TimelineService
from app.utils.logger import log_warning
from app.utils.prometheus_metrics import content_operations_total

router = APIRouter(prefix="/api/timeline", tags=["Timeline"])


async def _get_event_or_404(timeline_service: TimelineService, event_id: str) -> TimelineEvent:
    event = await timeline_service.get_event_by_id(event_id)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


@router.get(
    "",
    response_model=TimelineListResponse,
    summary="List timeline events",
)
async def list_events(
    db: AsyncSession = Depends(get_db),
) -> TimelineListResponse:
    """
    List all timeline events sorted by order.
    The default timeline is created on first access if there are none.
    """
    events = await TimelineService(db).list_events()
    return TimelineListResponse(
        events=[TimelineEventResponse.model_validate(event) for event in events],
    )


@router.post(
    "",
    response_model=TimelineEventEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a timeline event",
)
async def create_event(
    event_data: TimelineEventCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> TimelineEventEnvelope:
    """
    Append a new event at the end of the timeline.

    - **date**: Free-text label (e.g. "First Met")
    - **icon**: `heart` (default) or `sparkles`
    """
    event = await TimelineService(db).create_event(event_data)
    content_operations_total.labels(resource="timeline", operation="create", result="success").inc()
    return TimelineEventEnvelope(event=TimelineEventResponse.model_validate(event))


@router.put(
    "",
    response_model=MessageResponse,
    summary="Reorder timeline events",
)
async def reorder_events(
    reorder_data: TimelineReorder,
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> MessageResponse:
    """
    Set the order of several events at once.

    All pairs are applied in one transaction: if any id is unknown nothing
    changes (404); repeated ids or order values are rejected (400).
    """
    try:
        missing = await TimelineService(db).reorder_events(reorder_data.events)
    except ValueError as e:
        content_operations_total.labels(resource="timeline", operation="reorder", result="failure").inc()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    if missing:
        content_operations_total.labels(resource="timeline", operation="reorder", result="failure").inc()
        log_warning("Timeline reorder with unknown ids", event="timeline", missing=len(missing))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event not found: {', '.join(missing)}",
        )

    content_operations_total.labels(resource="timeline", operation="reorder", result="success").inc()
    return MessageResponse(message="Timeline order updated successfully")


@router.delete(
    "",
    response_model=TimelineListResponse,
    summary="Reset timeline to default",
)
async def reset_timeline(
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> TimelineListResponse:
    """Delete every event and restore the four default milestones."""
    events = await TimelineService(db).reset_to_default()
    content_operations_total.labels(resource="timeline", operation="reset", result="success").inc()
    return TimelineListResponse(
        message="Timeline reset to default",
        events=[TimelineEventResponse.model_validate(event) for event in events],
    )


@router.put(
    "/{event_id}",
    response_model=TimelineEventEnvelope,
    summary="Edit a timeline event",
)
async def update_event(
    event_id: str,
    update_data: TimelineEventUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> TimelineEventEnvelope:
    """
    Replace an event's date, title, description and icon.
    Edited events are no longer marked as default.
    """
    timeline_service = TimelineService(db)
    event = await _get_event_or_404(timeline_service, event_id)
    event = await timeline_service.update_event(event, update_data)
    content_operations_total.labels(resource="timeline", operation="update", result="success").inc()
    return TimelineEventEnvelope(event=TimelineEventResponse.model_validate(event))


@router.delete(
    "/{event_id}",
    response_model=MessageResponse,
    summary="Delete a timeline event",
)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> MessageResponse:
    """
    Delete an event; the remaining events are renumbered 0..n-1.
    """
    timeline_service = TimelineService(db)
    event = await _get_event_or_404(timeline_service, event_id)
    await timeline_service.delete_event(event)
    content_operations_total.labels(resource="timeline", operation="delete", result="success").inc()
    return MessageResponse(message="Event deleted successfully")
