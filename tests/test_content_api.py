import unittest

from tests.support import ApiTestCase, make_image_bytes

from app.services.album import DEFAULT_ALBUMS
from app.services.timeline import DEFAULT_EVENTS


class AlbumApiTests(ApiTestCase):
    def _albums(self):
        response = self.client.get("/api/albums")
        self.assertEqual(response.status_code, 200)
        return response.json()["albums"]

    def test_first_read_seeds_defaults_once(self):
        first = self._albums()
        second = self._albums()

        self.assertEqual([a["title"] for a in first], [a["title"] for a in DEFAULT_ALBUMS])
        self.assertEqual([a["order"] for a in first], [0, 1, 2, 3])
        self.assertTrue(all(a["isDefault"] for a in first))
        self.assertEqual([a["id"] for a in first], [a["id"] for a in second])
        self.assertEqual(first[0]["coverImage"], "/images/wedding-couple1.png")
        self.assertEqual(
            first[0]["googlePhotosLink"],
            "https://photos.google.com/your-engagement-album",
        )

    def test_update_requires_admin_session(self):
        album_id = self._albums()[0]["id"]

        response = self.client.put(
            f"/api/albums/{album_id}",
            json={"title": "X", "description": "Y", "googlePhotosLink": "https://z"},
        )

        self.assertEqual(response.status_code, 401)

    def test_update_replaces_fields_and_keeps_cover_when_omitted(self):
        album = self._albums()[1]
        self.login()

        response = self.client.put(
            f"/api/albums/{album['id']}",
            json={
                "title": "  Sangeet Night ",
                "description": "Music and dance",
                "googlePhotosLink": "https://photos.google.com/sangeet",
            },
        )

        self.assertEqual(response.status_code, 200)
        updated = response.json()["album"]
        self.assertEqual(updated["title"], "Sangeet Night")
        self.assertEqual(updated["googlePhotosLink"], "https://photos.google.com/sangeet")
        self.assertEqual(updated["coverImage"], album["coverImage"])
        self.assertEqual(updated["order"], album["order"])

    def test_update_unknown_album_is_404(self):
        self.login()

        response = self.client.put(
            "/api/albums/0123456789abcdef0123456789abcdef",
            json={"title": "X", "description": "Y", "googlePhotosLink": "https://z"},
        )

        self.assertEqual(response.status_code, 404)

    def test_update_with_missing_field_is_400(self):
        album_id = self._albums()[0]["id"]
        self.login()

        response = self.client.put(
            f"/api/albums/{album_id}",
            json={"title": "Only a title"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("description", response.json()["detail"])

    def test_cover_upload_stores_square_jpeg_data_uri(self):
        album_id = self._albums()[0]["id"]
        self.login()

        response = self.client.post(
            f"/api/albums/{album_id}/cover",
            files={"file": ("cover.png", make_image_bytes(400, 300), "image/png")},
        )

        self.assertEqual(response.status_code, 200)
        cover = response.json()["album"]["coverImage"]
        self.assertTrue(cover.startswith("data:image/jpeg;base64,"))
        self.assertEqual(self._albums()[0]["coverImage"], cover)

    def test_cover_upload_rejects_non_image(self):
        album_id = self._albums()[0]["id"]
        self.login()

        response = self.client.post(
            f"/api/albums/{album_id}/cover",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        self.assertEqual(response.status_code, 400)

    def test_reset_restores_defaults(self):
        album_id = self._albums()[0]["id"]
        self.login()
        self.client.put(
            f"/api/albums/{album_id}",
            json={"title": "Changed", "description": "Changed", "googlePhotosLink": "https://x"},
        )

        response = self.client.delete("/api/albums")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["message"], "Albums reset to default")
        titles = [a["title"] for a in self._albums()]
        self.assertEqual(titles, [a["title"] for a in DEFAULT_ALBUMS])
        self.assertNotIn(album_id, [a["id"] for a in self._albums()])


class TimelineApiTests(ApiTestCase):
    def _events(self):
        response = self.client.get("/api/timeline")
        self.assertEqual(response.status_code, 200)
        return response.json()["events"]

    def _create(self, **fields):
        payload = {"date": "Summer 2024", "title": "Road Trip", "description": "Miles of laughter"}
        payload.update(fields)
        return self.client.post("/api/timeline", json=payload)

    def test_first_read_seeds_default_timeline(self):
        events = self._events()

        self.assertEqual([e["date"] for e in events], [e["date"] for e in DEFAULT_EVENTS])
        self.assertEqual([e["icon"] for e in events], ["sparkles", "heart", "heart", "sparkles"])
        self.assertEqual([e["order"] for e in events], [0, 1, 2, 3])
        self.assertEqual(len(self._events()), 4)

    def test_create_appends_after_max_order(self):
        self._events()
        self.login()

        response = self._create()

        self.assertEqual(response.status_code, 201)
        event = response.json()["event"]
        self.assertEqual(event["order"], 4)
        self.assertEqual(event["icon"], "heart")
        self.assertFalse(event["isDefault"])

    def test_create_on_empty_timeline_starts_at_zero(self):
        self.login()

        response = self._create(icon="sparkles")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["event"]["order"], 0)
        self.assertEqual(response.json()["event"]["icon"], "sparkles")

    def test_create_rejects_unknown_icon_and_missing_fields(self):
        self.login()

        self.assertEqual(self._create(icon="star").status_code, 400)
        self.assertEqual(self._create(title="   ").status_code, 400)

    def test_create_requires_admin_session(self):
        self.assertEqual(self._create().status_code, 401)

    def test_edit_clears_default_flag_and_keeps_order(self):
        event = self._events()[2]
        self.login()

        response = self.client.put(
            f"/api/timeline/{event['id']}",
            json={"date": "The Proposal", "title": "She said yes", "description": "On the beach"},
        )

        self.assertEqual(response.status_code, 200)
        edited = response.json()["event"]
        self.assertFalse(edited["isDefault"])
        self.assertEqual(edited["order"], 2)
        self.assertEqual(edited["icon"], "heart")
        self.assertEqual(edited["title"], "She said yes")

    def test_reorder_applies_all_pairs(self):
        events = self._events()
        self.login()
        new_orders = [
            {"id": events[0]["id"], "order": 3},
            {"id": events[3]["id"], "order": 0},
        ]

        response = self.client.put("/api/timeline", json={"events": new_orders})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Timeline order updated successfully")
        ids = [e["id"] for e in self._events()]
        self.assertEqual(ids[0], events[3]["id"])
        self.assertEqual(ids[3], events[0]["id"])

    def test_reorder_with_unknown_id_changes_nothing(self):
        events = self._events()
        self.login()

        response = self.client.put(
            "/api/timeline",
            json={"events": [
                {"id": events[0]["id"], "order": 3},
                {"id": "ffffffffffffffffffffffffffffffff", "order": 0},
            ]},
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual([e["order"] for e in self._events()], [0, 1, 2, 3])
        self.assertEqual(self._events()[0]["id"], events[0]["id"])

    def test_reorder_with_duplicate_orders_is_400(self):
        events = self._events()
        self.login()

        response = self.client.put(
            "/api/timeline",
            json={"events": [
                {"id": events[0]["id"], "order": 1},
                {"id": events[1]["id"], "order": 1},
            ]},
        )

        self.assertEqual(response.status_code, 400)

    def test_delete_compacts_remaining_orders(self):
        events = self._events()
        self.login()

        response = self.client.delete(f"/api/timeline/{events[1]['id']}")

        self.assertEqual(response.status_code, 200)
        remaining = self._events()
        self.assertEqual([e["order"] for e in remaining], [0, 1, 2])
        self.assertEqual(
            [e["id"] for e in remaining],
            [events[0]["id"], events[2]["id"], events[3]["id"]],
        )

    def test_delete_unknown_event_is_404(self):
        self.login()

        response = self.client.delete("/api/timeline/0123456789abcdef0123456789abcdef")

        self.assertEqual(response.status_code, 404)

    def test_reset_restores_default_timeline(self):
        self._events()
        self.login()
        self._create()

        response = self.client.delete("/api/timeline")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Timeline reset to default")
        events = self._events()
        self.assertEqual(len(events), 4)
        self.assertTrue(all(e["isDefault"] for e in events))


if __name__ == "__main__":
    unittest.main()
