"""
Admin console routes.

- `/api/admin/*`: admin-only API operations (401 without a session)
- `/user/admin`, `/user/auth/login`: page entry points behind AdminGateMiddleware
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import get_current_admin
from app.routers.memory_cards import get_card_or_404
from app.schemas.auth import AdminTokenPayload
from app.schemas.common import MessageResponse
from app.services.album import AlbumService
from app.services.memory_card import MemoryCardService
from app.services.timeline import TimelineService
from app.utils.logger import log_info
from app.utils.prometheus_metrics import memory_card_operations_total

router = APIRouter(prefix="/api/admin", tags=["Admin"])
pages_router = APIRouter(prefix="/user", tags=["Admin Pages"])


@router.delete(
    "/memory-cards/{card_id}",
    response_model=MessageResponse,
    summary="Delete any memory card",
)
async def admin_delete_memory_card(
    card_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
) -> MessageResponse:
    """Moderation delete: no ownership check, admin session required."""
    card_service = MemoryCardService(db)
    card = await get_card_or_404(card_service, card_id, operation="admin_delete")
    await card_service.delete_card(card)

    memory_card_operations_total.labels(operation="admin_delete", result="success").inc()
    log_info(
        "Memory card deleted by admin",
        event="memory_card",
        card_id=card_id,
        serial_number=card.serial_number,
    )
    return MessageResponse(message="Memory card deleted successfully")


@pages_router.get(
    "/admin",
    summary="Admin dashboard",
)
async def admin_dashboard(
    db: AsyncSession = Depends(get_db),
    admin: AdminTokenPayload = Depends(get_current_admin),
):
    """
    Dashboard summary for the admin console.
    Unauthenticated requests never get here (redirected by the gate).
    """
    return {
        "success": True,
        "admin": admin.username,
        "counts": {
            "albums": await AlbumService(db).count_albums(),
            "timelineEvents": await TimelineService(db).count_events(),
            "memoryCards": await MemoryCardService(db).count_cards(),
        },
    }


@pages_router.get(
    "/auth/login",
    summary="Admin login page",
)
async def admin_login_page():
    """Login entry point; already logged-in admins are redirected to the dashboard."""
    return {
        "success": True,
        "authenticated": False,
        "loginEndpoint": "/api/auth/login",
    }
