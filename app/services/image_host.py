"""
ImgBB image host integration.
Memory card photos are uploaded here; only the returned URL is stored.

API 참고: https://api.imgbb.com/
"""
import base64
import logging
from typing import Optional

import httpx

from app.config import get_settings
from app.utils.clock import now_ms
from app.utils.prometheus_metrics import record_external_request

logger = logging.getLogger("app.image_host")


class ImageHostError(Exception):
    """Upload to the image host failed (not configured, HTTP error, bad response)."""


class ImageHostService:
    """
    Thin client for the ImgBB upload API.

    ImgBB에는 폴더 개념이 없어서 이미지 이름 앞에 `{folder}/` 를 붙여서 구분함.
    """

    SERVICE_NAME = "imgbb"

    def __init__(self):
        self.settings = get_settings()

    def build_image_name(self, issued_at_ms: Optional[int] = None) -> str:
        if issued_at_ms is None:
            issued_at_ms = now_ms()
        return f"{self.settings.imgbb_folder}/memory-card-{issued_at_ms}"

    async def upload_image(self, content: bytes, name: Optional[str] = None) -> str:
        """
        Upload an image and return its public URL.

        Args:
            content: Encoded image bytes
            name: Image name on the host (default `{folder}/memory-card-{ms}`)

        Returns:
            Public URL of the uploaded image

        Raises:
            ImageHostError: on missing API key, transport error, non-2xx
                status or an unexpected response body
        """
        if not self.settings.imgbb_api_key:
            raise ImageHostError("ImgBB API key not configured")

        form = {
            "image": base64.b64encode(content).decode("ascii"),
            "name": name or self.build_image_name(),
        }

        try:
            async with record_external_request(self.SERVICE_NAME):
                async with httpx.AsyncClient(
                    timeout=self.settings.imgbb_timeout_seconds
                ) as client:
                    response = await client.post(
                        self.settings.imgbb_upload_url,
                        params={"key": self.settings.imgbb_api_key},
                        data=form,
                    )
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Image host upload rejected",
                extra={"event": "image_host", "status": e.response.status_code},
            )
            raise ImageHostError("Failed to upload image to ImgBB") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Image host upload error", exc_info=e, extra={"event": "image_host"})
            raise ImageHostError("Failed to upload image to ImgBB") from e

        url = (data.get("data") or {}).get("url") if isinstance(data, dict) else None
        if not url:
            logger.error("Image host response missing url", extra={"event": "image_host"})
            raise ImageHostError("Image host response did not include a URL")

        logger.info("Image uploaded", extra={"event": "image_host", "size_bytes": len(content)})
        return url


# Singleton instance
_image_host_service: Optional[ImageHostService] = None


def get_image_host_service() -> ImageHostService:
    """Get the singleton image host service instance."""
    global _image_host_service
    if _image_host_service is None:
        _image_host_service = ImageHostService()
    return _image_host_service
