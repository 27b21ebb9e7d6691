"""
Album model for the gallery section.
Each album links out to an external Google Photos album.
"""
from datetime import datetime

from sqlalchemy import String, DateTime, Integer, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.clock import utcnow
from app.utils.ids import generate_record_id


class Album(Base):
    """Gallery album shown on the public site."""

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_record_id
    )

    # Album information
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # data URI (압축된 커버) 또는 정적 이미지 URL
    cover_image: Mapped[str] = mapped_column(Text, nullable=False)
    google_photos_link: Mapped[str] = mapped_column(String(1000), nullable=False)

    # Display sequence
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Album(id={self.id}, title={self.title}, order={self.order})>"
