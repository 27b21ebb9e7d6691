import asyncio
import unittest
from unittest import mock

from tests.support import MEMORY_CARD_PASSWORD, ApiTestCase, app, make_image_bytes

import httpx
from PIL import Image

from app.config import get_settings
from app.services.image_host import ImageHostError

HOSTED_URL = "https://i.ibb.co/abc123/memory-card.jpg"
UNKNOWN_ID = "0123456789abcdef0123456789abcdef"


class MemoryCardApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.image_host = mock.Mock()
        self.image_host.upload_image = mock.AsyncMock(return_value=HOSTED_URL)
        patcher = mock.patch(
            "app.routers.memory_cards.get_image_host_service",
            return_value=self.image_host,
        )
        self.addCleanup(patcher.stop)
        patcher.start()

    def _create(self, files=None, **fields):
        data = {
            "name": "Aunt Meera",
            "message": "Wishing you a lifetime of love!",
            "password": MEMORY_CARD_PASSWORD,
            "deviceFingerprint": "fp-guest-1",
        }
        data.update(fields)
        data = {key: value for key, value in data.items() if value is not None}
        return self.client.post("/api/memory-cards", data=data, files=files)

    def _list(self, **params):
        response = self.client.get("/api/memory-cards", params=params)
        self.assertEqual(response.status_code, 200)
        return response.json()

    def test_create_returns_card_and_owner_token(self):
        response = self._create()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertTrue(body["ownerToken"])
        card = body["card"]
        self.assertEqual(card["serialNumber"], 1)
        self.assertEqual(card["name"], "Aunt Meera")
        self.assertIsNone(card["photo"])
        self.assertTrue(card["isOwner"])
        self.assertNotIn("deviceFingerprint", card)
        self.image_host.upload_image.assert_not_called()

    def test_missing_fields_are_rejected_first(self):
        response = self._create(name=None, password="wrong")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Missing required fields")

    def test_wrong_password_is_401(self):
        response = self._create(password="not-the-password")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(self._list()["total"], 0)

    def test_message_length_limit(self):
        too_long = self._create(message="x" * 201)
        just_right = self._create(message="x" * 200)

        self.assertEqual(too_long.status_code, 400)
        self.assertEqual(too_long.json()["detail"], "Message must be 200 characters or less")
        self.assertEqual(just_right.status_code, 201)
        self.assertEqual(self._list()["total"], 1)

    def test_message_length_counts_utf16_units(self):
        too_long = self._create(message="\U0001F48D" * 101)
        just_right = self._create(message="\U0001F48D" * 100)

        self.assertEqual(too_long.status_code, 400)
        self.assertEqual(just_right.status_code, 201)

    def test_oversized_canvas_photo_is_400(self):
        files = {"photo": ("huge.png", make_image_bytes(100, 100), "image/png")}

        with mock.patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            response = self._create(files=files)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid image file")
        self.image_host.upload_image.assert_not_called()
        self.assertEqual(self._list()["total"], 0)

    def test_concurrent_creates_get_distinct_serials(self):
        async def create_many(count):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                return await asyncio.gather(*(
                    client.post(
                        "/api/memory-cards",
                        data={
                            "name": f"Guest {index}",
                            "message": "Congratulations!",
                            "password": MEMORY_CARD_PASSWORD,
                            "deviceFingerprint": f"fp-{index}",
                        },
                    )
                    for index in range(count)
                ))

        # 이 이벤트 루프 전용 lock
        with mock.patch("app.services.memory_card._serial_lock", asyncio.Lock()):
            responses = asyncio.run(create_many(5))

        self.assertEqual([r.status_code for r in responses], [201] * 5)
        serials = sorted(r.json()["card"]["serialNumber"] for r in responses)
        self.assertEqual(serials, [1, 2, 3, 4, 5])

    def test_photo_is_compressed_and_uploaded(self):
        files = {"photo": ("dance.png", make_image_bytes(2400, 1200), "image/png")}

        response = self._create(files=files)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["card"]["photo"], HOSTED_URL)
        uploaded = self.image_host.upload_image.await_args.args[0]
        self.assertTrue(uploaded.startswith(b"\xff\xd8"))  # JPEG
        self.assertLessEqual(len(uploaded), 400 * 1024)

    def test_failed_upload_creates_no_card(self):
        self.image_host.upload_image.side_effect = ImageHostError("boom")
        files = {"photo": ("dance.png", make_image_bytes(100, 100), "image/png")}

        response = self._create(files=files)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Failed to upload image")
        self.assertEqual(self._list()["total"], 0)

    def test_undecodable_photo_is_400(self):
        files = {"photo": ("dance.jpg", b"not really a jpeg", "image/jpeg")}

        response = self._create(files=files)

        self.assertEqual(response.status_code, 400)
        self.image_host.upload_image.assert_not_called()
        self.assertEqual(self._list()["total"], 0)

    def test_serial_numbers_continue_from_highest(self):
        first = self._create().json()
        self._create()
        self.client.delete(
            f"/api/memory-cards/{first['card']['id']}",
            params={"deviceFingerprint": "fp-guest-1", "ownerToken": first["ownerToken"]},
        )
        created = [self._create().json()["card"]["serialNumber"] for _ in range(2)]

        self.assertEqual(created, [3, 4])

    def test_serial_after_deleting_highest_card(self):
        self._create()
        last = self._create().json()
        self.client.delete(
            f"/api/memory-cards/{last['card']['id']}",
            params={"deviceFingerprint": "fp-guest-1", "ownerToken": last["ownerToken"]},
        )

        # max + 1 기준이라 최댓값을 지우면 같은 번호가 다시 나옴
        self.assertEqual(self._create().json()["card"]["serialNumber"], 2)

    def test_list_is_newest_first_with_ownership_flags(self):
        self._create(name="First", deviceFingerprint="fp-a")
        self._create(name="Second", deviceFingerprint="fp-b")
        self._create(name="Third", deviceFingerprint="fp-a")

        body = self._list(deviceFingerprint="fp-a")

        self.assertEqual(body["total"], 3)
        self.assertEqual([c["name"] for c in body["cards"]], ["Third", "Second", "First"])
        self.assertEqual([c["isOwner"] for c in body["cards"]], [True, False, True])
        self.assertFalse(any(c["isOwner"] for c in self._list()["cards"]))

    def test_list_limit(self):
        for index in range(3):
            self._create(name=f"Guest {index}")

        body = self._list(limit=2)

        self.assertEqual(body["total"], 2)
        self.assertEqual(len(self._list(limit=0)["cards"]), 3)

    def test_get_single_card(self):
        card = self._create().json()["card"]

        response = self.client.get(
            f"/api/memory-cards/{card['id']}",
            params={"deviceFingerprint": "fp-guest-1"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["card"]["isOwner"])
        self.assertEqual(self.client.get("/api/memory-cards/not-an-id").status_code, 400)
        self.assertEqual(self.client.get(f"/api/memory-cards/{UNKNOWN_ID}").status_code, 404)


class MemoryCardDeleteTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        response = self.client.post(
            "/api/memory-cards",
            data={
                "name": "Cousin Ravi",
                "message": "Congratulations!",
                "password": MEMORY_CARD_PASSWORD,
                "deviceFingerprint": "fp-owner",
            },
        )
        self.assertEqual(response.status_code, 201)
        self.card_id = response.json()["card"]["id"]
        self.owner_token = response.json()["ownerToken"]

    def _delete(self, card_id=None, **params):
        return self.client.delete(f"/api/memory-cards/{card_id or self.card_id}", params=params)

    def test_owner_delete_checks(self):
        cases = [
            ({}, None, 400),
            ({"deviceFingerprint": "fp-owner"}, "not-an-id", 400),
            ({"deviceFingerprint": "fp-owner"}, UNKNOWN_ID, 404),
            ({"deviceFingerprint": "fp-other", "ownerToken": self.owner_token}, None, 403),
            ({"deviceFingerprint": "fp-owner"}, None, 403),
            ({"deviceFingerprint": "fp-owner", "ownerToken": "forged"}, None, 403),
        ]
        for params, card_id, expected in cases:
            with self.subTest(params=params, card_id=card_id):
                self.assertEqual(self._delete(card_id, **params).status_code, expected)

    def test_owner_delete_with_token(self):
        response = self._delete(deviceFingerprint="fp-owner", ownerToken=self.owner_token)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Memory card deleted successfully")
        self.assertEqual(self.client.get(f"/api/memory-cards/{self.card_id}").status_code, 404)

    def test_fingerprint_alone_when_token_not_required(self):
        with mock.patch.object(get_settings(), "memory_card_owner_token_required", False):
            response = self._delete(deviceFingerprint="fp-owner")

        self.assertEqual(response.status_code, 200)

    def test_admin_delete_requires_session(self):
        response = self.client.delete(f"/api/admin/memory-cards/{self.card_id}")

        self.assertEqual(response.status_code, 401)

    def test_admin_delete(self):
        self.login()

        response = self.client.delete(f"/api/admin/memory-cards/{self.card_id}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            self.client.delete(f"/api/admin/memory-cards/{self.card_id}").status_code,
            404,
        )
        self.assertEqual(
            self.client.delete("/api/admin/memory-cards/not-an-id").status_code,
            400,
        )


if __name__ == "__main__":
    unittest.main()
