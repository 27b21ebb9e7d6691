"""
Shared test setup.

Settings are read once at import time, so the environment is configured here
before anything under `app` is imported. Import this module first.
"""
import asyncio
import io
import os
import tempfile
import unittest
from pathlib import Path

_TEMP_DIR = tempfile.mkdtemp(prefix="forever-begins-tests-")

os.environ["ENVIRONMENT"] = "DEV"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_TEMP_DIR) / 'test.db'}"
os.environ["SEED_ON_STARTUP"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"
os.environ["MEMORY_CARD_PASSWORD"] = "forever"
os.environ["IMGBB_API_KEY"] = "test-imgbb-key"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["LOG_DIR"] = ""

from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from app.database import Base, engine  # noqa: E402
from app.main import app  # noqa: E402

ADMIN_USERNAME = os.environ["ADMIN_USERNAME"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
MEMORY_CARD_PASSWORD = os.environ["MEMORY_CARD_PASSWORD"]


def reset_database() -> None:
    """Drop and recreate every table."""
    async def _reset():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_reset())


def make_image_bytes(width: int, height: int, fmt: str = "PNG", noise: bool = False) -> bytes:
    """Encode a synthetic image. `noise=True` makes it hard to compress."""
    if noise:
        image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    else:
        image = Image.new("RGB", (width, height), (200, 120, 90))
    buffer = io.BytesIO()
    image.save(buffer, fmt)
    return buffer.getvalue()


def login(client) -> None:
    """Log the TestClient in as admin (cookie kept on the client)."""
    response = client.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text


class ApiTestCase(unittest.TestCase):
    """Fresh database and a fresh (cookie-less) client per test."""

    def setUp(self):
        reset_database()
        self.client = TestClient(app)

    def login(self) -> None:
        login(self.client)
