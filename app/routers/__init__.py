"""
API routers package.
"""
from app.routers.auth import router as auth_router
from app.routers.albums import router as albums_router
from app.routers.timeline import router as timeline_router
from app.routers.memory_cards import router as memory_cards_router
from app.routers.admin import router as admin_router, pages_router as admin_pages_router
from app.routers.health import router as health_router

__all__ = [
    "auth_router",
    "albums_router",
    "timeline_router",
    "memory_cards_router",
    "admin_router",
    "admin_pages_router",
    "health_router",
]
