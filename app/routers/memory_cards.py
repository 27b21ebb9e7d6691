"""
Memory cards router for the guest wall.
"""
import secrets
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.middlewares.rate_limit_middleware import get_rate_limit_decorator
from app.models.memory_card import MemoryCard
from app.schemas.common import MessageResponse
from app.schemas.memory_card import (
    MemoryCardCreated,
    MemoryCardEnvelope,
    MemoryCardListResponse,
)
from app.services.image_host import ImageHostError, get_image_host_service
from app.services.image_normalizer import (
    ImageDecodeError,
    ImageEncodeError,
    compress_bounded,
)
from app.services.memory_card import MemoryCardService, SerialAllocationError
from app.utils.ids import is_valid_record_id
from app.utils.logger import log_error, log_info, log_warning
from app.utils.prometheus_metrics import memory_card_operations_total
from app.utils.security import create_owner_token, is_owner, verify_owner_token
from app.utils.uploads import read_image_upload

router = APIRouter(prefix="/api/memory-cards", tags=["Memory Cards"])

settings = get_settings()


def _reject(status_code: int, detail: str, operation: str = "create") -> HTTPException:
    memory_card_operations_total.labels(operation=operation, result="failure").inc()
    return HTTPException(status_code=status_code, detail=detail)


def utf16_length(text: str) -> int:
    """
    Length in UTF-16 code units, the way browsers count characters
    (an emoji outside the BMP counts as 2).
    """
    return len(text.encode("utf-16-le")) // 2


async def get_card_or_404(
    card_service: MemoryCardService,
    card_id: str,
    operation: str,
) -> MemoryCard:
    """Look up a card by id: 400 for a malformed id, 404 if unknown."""
    if not is_valid_record_id(card_id):
        raise _reject(status.HTTP_400_BAD_REQUEST, "Invalid card ID", operation)
    card = await card_service.get_card_by_id(card_id)
    if not card:
        raise _reject(status.HTTP_404_NOT_FOUND, "Memory card not found", operation)
    return card


async def _process_photo(photo: UploadFile) -> Optional[str]:
    """
    Compress an uploaded photo and push it to the image host.

    Returns:
        Hosted URL, or None when the part was empty
    """
    content = await read_image_upload(photo, allow_empty=True)
    if not content:
        return None

    try:
        compressed = await run_in_threadpool(
            compress_bounded,
            content,
            photo.filename or "photo.jpg",
            settings.memory_card_photo_max_kb,
            settings.memory_card_photo_max_width,
            settings.memory_card_photo_max_height,
        )
    except ImageDecodeError:
        log_warning("Memory card photo is not a valid image", event="memory_card")
        raise _reject(status.HTTP_400_BAD_REQUEST, "Invalid image file")
    except ImageEncodeError:
        raise _reject(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process image")

    try:
        return await get_image_host_service().upload_image(compressed.content)
    except ImageHostError as e:
        log_error("Image upload error", event="memory_card", error_message=str(e))
        raise _reject(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to upload image")


@router.post(
    "",
    response_model=MemoryCardCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a memory card",
)
@get_rate_limit_decorator(settings.memory_card_rate_limit)
async def create_memory_card(
    request: Request,
    name: Optional[str] = Form(None),
    message: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    device_fingerprint: Optional[str] = Form(None, alias="deviceFingerprint"),
    photo: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
) -> MemoryCardCreated:
    """
    Leave a card on the guest wall (multipart form).

    - **name**, **message**, **password**, **deviceFingerprint**: required
    - **message**: 200 characters or less
    - **photo**: optional; resized, compressed and uploaded to the image host

    The response carries `ownerToken`; keep it to delete the card later.
    """
    name = (name or "").strip()
    if not name or not message or not password or not device_fingerprint:
        raise _reject(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    if not settings.memory_card_password or not secrets.compare_digest(
        password.encode("utf-8"), settings.memory_card_password.encode("utf-8")
    ):
        log_warning("Memory card rejected - invalid password", event="memory_card")
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Invalid password")

    max_length = settings.memory_card_message_max_length
    if utf16_length(message) > max_length:
        raise _reject(
            status.HTTP_400_BAD_REQUEST,
            f"Message must be {max_length} characters or less",
        )

    # 사진 업로드가 실패하면 카드를 만들지 않음
    photo_url = await _process_photo(photo) if photo is not None else None

    card_service = MemoryCardService(db)
    try:
        card = await card_service.create_card(
            name=name,
            message=message,
            device_fingerprint=device_fingerprint,
            photo=photo_url,
        )
    except SerialAllocationError:
        log_error("Memory card serial allocation failed", event="memory_card")
        raise _reject(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create memory card")
    memory_card_operations_total.labels(operation="create", result="success").inc()

    return MemoryCardCreated(
        card=card_service.to_response(card, device_fingerprint),
        owner_token=create_owner_token(card.id, device_fingerprint),
    )


@router.get(
    "",
    response_model=MemoryCardListResponse,
    summary="List memory cards",
)
async def list_memory_cards(
    limit: int = Query(0, description="Maximum number of cards (0 = all)"),
    device_fingerprint: Optional[str] = Query(None, alias="deviceFingerprint"),
    db: AsyncSession = Depends(get_db),
) -> MemoryCardListResponse:
    """
    List cards newest first.
    With `deviceFingerprint`, each card reports whether it belongs to that device.
    """
    card_service = MemoryCardService(db)
    cards = await card_service.list_cards(limit=limit)
    return MemoryCardListResponse(
        cards=[card_service.to_response(card, device_fingerprint) for card in cards],
        total=len(cards),
    )


@router.get(
    "/{card_id}",
    response_model=MemoryCardEnvelope,
    summary="Get a memory card",
)
async def get_memory_card(
    card_id: str,
    device_fingerprint: Optional[str] = Query(None, alias="deviceFingerprint"),
    db: AsyncSession = Depends(get_db),
) -> MemoryCardEnvelope:
    """Get a single card with its ownership flag."""
    card_service = MemoryCardService(db)
    card = await get_card_or_404(card_service, card_id, operation="read")
    return MemoryCardEnvelope(card=card_service.to_response(card, device_fingerprint))


@router.delete(
    "/{card_id}",
    response_model=MessageResponse,
    summary="Delete own memory card",
)
async def delete_own_memory_card(
    card_id: str,
    device_fingerprint: Optional[str] = Query(None, alias="deviceFingerprint"),
    owner_token: Optional[str] = Query(None, alias="ownerToken"),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Delete a card created from this device.

    - **deviceFingerprint**: must match the card's fingerprint
    - **ownerToken**: the token returned at creation (required unless
      MEMORY_CARD_OWNER_TOKEN_REQUIRED is off)
    """
    if not device_fingerprint:
        raise _reject(status.HTTP_400_BAD_REQUEST, "Device fingerprint required", "delete")

    card_service = MemoryCardService(db)
    card = await get_card_or_404(card_service, card_id, operation="delete")

    if not is_owner(card.device_fingerprint, device_fingerprint):
        log_warning("Memory card delete rejected - not owner", event="memory_card", card_id=card.id)
        raise _reject(status.HTTP_403_FORBIDDEN, "You can only delete cards you created", "delete")

    if settings.memory_card_owner_token_required and not verify_owner_token(
        owner_token, card.id, device_fingerprint
    ):
        log_warning("Memory card delete rejected - bad owner token", event="memory_card", card_id=card.id)
        raise _reject(status.HTTP_403_FORBIDDEN, "Invalid owner token", "delete")

    await card_service.delete_card(card)
    memory_card_operations_total.labels(operation="delete", result="success").inc()
    log_info("Memory card deleted by owner", event="memory_card", card_id=card_id)
    return MessageResponse(message="Memory card deleted successfully")
