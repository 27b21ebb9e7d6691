"""
Database models package.
All models are exported here for easy import.
"""
from app.models.album import Album
from app.models.timeline_event import TimelineEvent, TimelineIcon
from app.models.memory_card import MemoryCard

__all__ = ["Album", "TimelineEvent", "TimelineIcon", "MemoryCard"]
