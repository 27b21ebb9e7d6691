"""
Memory card service for the guest wall.
"""
import asyncio
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_context
from app.models.memory_card import MemoryCard
from app.schemas.memory_card import MemoryCardResponse
from app.utils.clock import utcnow
from app.utils.logger import log_info, log_warning
from app.utils.security import is_owner

# 같은 프로세스 안에서 "max 조회 + insert + commit" 을 직렬화 (다중 프로세스는 unique index + 재시도)
_serial_lock = asyncio.Lock()

SERIAL_ALLOCATION_ATTEMPTS = 3


class SerialAllocationError(Exception):
    """No free serial number after the retry budget."""


class MemoryCardService:
    """
    Service for handling memory card operations.

    Serial numbers are display counters: `max + 1`, never renumbered, gaps
    allowed after deletes.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def next_serial_number(self, session: Optional[AsyncSession] = None) -> int:
        """Next serial number (1 when the wall is empty)."""
        if session is None:
            session = self.db
        current = await session.scalar(select(func.max(MemoryCard.serial_number)))
        return 1 if current is None else current + 1

    async def create_card(
        self,
        name: str,
        message: str,
        device_fingerprint: str,
        photo: Optional[str] = None,
    ) -> MemoryCard:
        """
        Create a memory card with the next serial number.

        The insert is committed in its own session while `_serial_lock` is
        held, so the next request always sees the new max. A duplicate serial
        from another process is retried up to SERIAL_ALLOCATION_ATTEMPTS times.

        Args:
            name: Guest name (already trimmed)
            message: Guest message (already length-checked)
            device_fingerprint: Browser fingerprint of the author
            photo: Hosted photo URL, if any

        Returns:
            Created MemoryCard model (committed)

        Raises:
            SerialAllocationError: every attempt hit the unique index
        """
        for attempt in range(1, SERIAL_ALLOCATION_ATTEMPTS + 1):
            try:
                async with _serial_lock:
                    async with get_db_context() as session:
                        card = MemoryCard(
                            serial_number=await self.next_serial_number(session),
                            name=name,
                            message=message,
                            photo=photo,
                            device_fingerprint=device_fingerprint,
                            timestamp=utcnow(),
                        )
                        session.add(card)
                        await session.flush()
                break
            except IntegrityError:
                log_warning(
                    "Memory card serial collision, retrying",
                    event="memory_card",
                    attempt=attempt,
                )
        else:
            raise SerialAllocationError("Could not allocate a serial number")

        log_info(
            "Memory card created",
            event="memory_card",
            card_id=card.id,
            serial_number=card.serial_number,
            has_photo=photo is not None,
        )
        return card

    async def list_cards(self, limit: int = 0) -> List[MemoryCard]:
        """
        Get cards newest first.

        Args:
            limit: Maximum number of cards; 0 or less means no limit
        """
        query = select(MemoryCard).order_by(
            MemoryCard.created_at.desc(), MemoryCard.serial_number.desc()
        )
        if limit > 0:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_card_by_id(self, card_id: str) -> Optional[MemoryCard]:
        result = await self.db.execute(select(MemoryCard).where(MemoryCard.id == card_id))
        return result.scalar_one_or_none()

    async def count_cards(self) -> int:
        return await self.db.scalar(select(func.count(MemoryCard.id))) or 0

    async def delete_card(self, card: MemoryCard) -> None:
        await self.db.delete(card)
        await self.db.flush()

    @staticmethod
    def to_response(
        card: MemoryCard,
        device_fingerprint: Optional[str] = None,
    ) -> MemoryCardResponse:
        """Public view of a card with the per-request ownership flag."""
        return MemoryCardResponse(
            id=card.id,
            serial_number=card.serial_number,
            name=card.name,
            message=card.message,
            photo=card.photo,
            timestamp=card.timestamp,
            is_owner=is_owner(card.device_fingerprint, device_fingerprint),
        )
