"""
Timeline event model for the love story section.
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import String, DateTime, Integer, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.clock import utcnow
from app.utils.ids import generate_record_id


class TimelineIcon(str, Enum):
    """Icon shown next to a timeline milestone."""
    HEART = "heart"
    SPARKLES = "sparkles"


class TimelineEvent(Base):
    """
    A milestone on the relationship timeline.

    `date` is a free-text label ("First Met", "December 14, 2025") and is
    never parsed.
    """

    __tablename__ = "timeline_events"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_record_id
    )

    date: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TimelineIcon.HEART.value
    )

    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    # 편집되면 False로 바뀜 (더 이상 기본 데이터가 아님)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<TimelineEvent(id={self.id}, date={self.date}, order={self.order})>"
