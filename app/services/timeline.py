"""
Timeline service for the love story section.
"""
import asyncio
from typing import List, Optional, Sequence

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_context
from app.models.timeline_event import TimelineEvent, TimelineIcon
from app.schemas.timeline import (
    TimelineEventCreate,
    TimelineEventUpdate,
    TimelineOrderItem,
)
from app.utils.logger import log_info
from app.utils.prometheus_metrics import content_seeded_total

DEFAULT_EVENTS = [
    {
        "date": "First Met",
        "title": "Where It All Began",
        "description": (
            "Our paths crossed for the first time, and little did we know, "
            "it was the beginning of forever."
        ),
        "icon": TimelineIcon.SPARKLES.value,
    },
    {
        "date": "First Date",
        "title": "A Magical Evening",
        "description": (
            "Coffee, conversation, and countless smiles. "
            "We knew there was something special between us."
        ),
        "icon": TimelineIcon.HEART.value,
    },
    {
        "date": "The Proposal",
        "title": "Forever Starts Now",
        "description": (
            "Under the stars, with hearts full of love, "
            "we decided to spend our lives together."
        ),
        "icon": TimelineIcon.HEART.value,
    },
    {
        "date": "December 14, 2025",
        "title": "Wedding Reception",
        "description": (
            "Celebrating our love with family and friends. "
            "Join us as we begin this beautiful journey together."
        ),
        "icon": TimelineIcon.SPARKLES.value,
    },
]

_seed_lock = asyncio.Lock()


def build_default_events() -> List[TimelineEvent]:
    """Fresh TimelineEvent rows for the default set (orders 0..n-1)."""
    return [
        TimelineEvent(order=index, is_default=True, **fields)
        for index, fields in enumerate(DEFAULT_EVENTS)
    ]


async def ensure_default_events() -> bool:
    """
    Insert the default timeline if there are no events.

    Returns:
        True if the defaults were inserted
    """
    async with _seed_lock:
        async with get_db_context() as session:
            count = await session.scalar(select(func.count(TimelineEvent.id)))
            if count:
                return False
            session.add_all(build_default_events())
            await session.flush()

    content_seeded_total.labels(resource="timeline", reason="empty").inc()
    log_info("Default timeline seeded", event="seed", resource="timeline")
    return True


class TimelineService:
    """
    Service for handling timeline operations.

    `order` is kept dense (0..n-1) after deletes; reorder writes whatever
    the admin sends as long as it is unambiguous.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_events(self) -> List[TimelineEvent]:
        """Get all events sorted by order, seeding the defaults when empty."""
        await ensure_default_events()
        return await self._ordered_events()

    async def _ordered_events(self) -> List[TimelineEvent]:
        result = await self.db.execute(
            select(TimelineEvent).order_by(TimelineEvent.order, TimelineEvent.created_at)
        )
        return list(result.scalars().all())

    async def get_event_by_id(self, event_id: str) -> Optional[TimelineEvent]:
        result = await self.db.execute(
            select(TimelineEvent).where(TimelineEvent.id == event_id)
        )
        return result.scalar_one_or_none()

    async def count_events(self) -> int:
        return await self.db.scalar(select(func.count(TimelineEvent.id))) or 0

    async def create_event(self, event_data: TimelineEventCreate) -> TimelineEvent:
        """
        Append a new event at the end of the timeline.

        Args:
            event_data: Event fields

        Returns:
            Created TimelineEvent (order = max + 1, or 0 when empty)
        """
        max_order = await self.db.scalar(select(func.max(TimelineEvent.order)))
        event = TimelineEvent(
            date=event_data.date,
            title=event_data.title,
            description=event_data.description,
            icon=event_data.icon.value,
            order=0 if max_order is None else max_order + 1,
            is_default=False,
        )
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)
        log_info("Timeline event created", event="timeline", event_id=event.id)
        return event

    async def update_event(
        self,
        event: TimelineEvent,
        update_data: TimelineEventUpdate,
    ) -> TimelineEvent:
        """
        Replace an event's content. Any edit clears `is_default`.
        The position (`order`) is not touched here.
        """
        event.date = update_data.date
        event.title = update_data.title
        event.description = update_data.description
        event.icon = update_data.icon.value
        event.is_default = False

        await self.db.flush()
        await self.db.refresh(event)
        return event

    async def reorder_events(self, items: Sequence[TimelineOrderItem]) -> List[str]:
        """
        Apply a batch of {id, order} pairs.

        Nothing is written unless every id exists.

        Returns:
            Ids from the request that do not exist (empty on success)

        Raises:
            ValueError: the request repeats an id or an order value
        """
        ids = [item.id for item in items]
        orders = [item.order for item in items]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate event ids in reorder request")
        if len(set(orders)) != len(orders):
            raise ValueError("Duplicate order values in reorder request")

        result = await self.db.execute(
            select(TimelineEvent).where(TimelineEvent.id.in_(ids))
        )
        found = {event.id: event for event in result.scalars().all()}
        missing = [event_id for event_id in ids if event_id not in found]
        if missing:
            return missing

        for item in items:
            found[item.id].order = item.order
        await self.db.flush()
        log_info("Timeline reordered", event="timeline", count=len(items))
        return []

    async def delete_event(self, event: TimelineEvent) -> List[TimelineEvent]:
        """
        Delete an event and compact the remaining orders to 0..n-1,
        keeping their previous relative sequence.

        Returns:
            Remaining events in their new order
        """
        await self.db.delete(event)
        await self.db.flush()

        remaining = await self._ordered_events()
        for index, item in enumerate(remaining):
            if item.order != index:
                item.order = index
        await self.db.flush()
        log_info("Timeline event deleted", event="timeline", remaining=len(remaining))
        return remaining

    async def reset_to_default(self) -> List[TimelineEvent]:
        """Delete every event and re-insert the defaults in one transaction."""
        await self.db.execute(delete(TimelineEvent))
        events = build_default_events()
        self.db.add_all(events)
        await self.db.flush()

        content_seeded_total.labels(resource="timeline", reason="reset").inc()
        log_info("Timeline reset to default", event="seed", resource="timeline")
        return events
