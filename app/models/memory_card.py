"""
Memory card model for the guest wall.
Photos are stored on the external image host; only the URL is kept here.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.clock import utcnow
from app.utils.ids import generate_record_id


class MemoryCard(Base):
    """
    A guest-submitted card.

    Ownership is not stored as an ACL: whoever presents the same
    `device_fingerprint` owns the card.
    """

    __tablename__ = "memory_cards"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_record_id
    )

    # max + 1 로 발급, 삭제 후 재사용하지 않음 (중간 번호가 비어 있을 수 있음)
    serial_number: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    photo: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    device_fingerprint: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )

    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<MemoryCard(id={self.id}, serial_number={self.serial_number})>"
