"""Tests for media uploads."""
import asyncio

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.config import settings
from app.models.media import MediaItem, MediaType
from app.services.media_service import detect_media_type
from app.storage import LocalMediaStorage
from tests.conftest import auth_headers, create_test_invite, create_test_user

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestUpload:

    def test_upload_image(self, client, db, upload_dir):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])

        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            data={"invite_id": invite_id, "caption": "Group photo"},
            files={"file": ("party.PNG", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["type"] == "IMAGE"
        assert data["caption"] == "Group photo"
        assert data["url"].startswith(f"/uploads/{invite_id}/media-")
        assert data["url"].endswith(".png")

        stored = upload_dir / invite_id / data["url"].rsplit("/", 1)[1]
        assert stored.read_bytes() == PNG_BYTES
        assert db.query(MediaItem).count() == 1

        details = client.get(f"/api/invites/{invite_id}", headers=auth_headers(sender["user_id"])).json()
        assert [m["media_id"] for m in details["media_items"]] == [data["media_id"]]

    def test_upload_video(self, client):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            data={"invite_id": invite_id},
            files={"file": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        )
        assert resp.status_code == 201
        assert resp.json()["type"] == "VIDEO"

    def test_missing_file(self, client):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.post("/api/media/", headers=auth_headers(sender["user_id"]), data={"invite_id": invite_id})
        assert resp.status_code == 400

    def test_missing_invite_id(self, client):
        sender = create_test_user(client)
        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            files={"file": ("a.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 400

    def test_unknown_invite(self, client, upload_dir):
        sender = create_test_user(client)
        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            data={"invite_id": "invite-nope"},
            files={"file": ("a.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 404
        assert list(upload_dir.iterdir()) == []

    def test_file_too_large(self, client, monkeypatch):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)
        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            data={"invite_id": invite_id},
            files={"file": ("a.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "File too large"

    def test_oversized_upload_read_is_bounded(self, client, monkeypatch):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)

        real_read = StarletteUploadFile.read
        requested = []

        async def _recording_read(self, size=-1):
            requested.append(size)
            return await real_read(self, size)

        monkeypatch.setattr(StarletteUploadFile, "read", _recording_read)
        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            data={"invite_id": invite_id},
            files={"file": ("a.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 400
        assert requested == [17]

    def test_failed_record_removes_stored_file(self, client, db, upload_dir, monkeypatch):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])

        real_commit = Session.commit

        def _fail_on_media(self):
            if any(isinstance(obj, MediaItem) for obj in self.new):
                raise OperationalError("INSERT INTO media_items", {}, Exception("disk full"))
            return real_commit(self)

        monkeypatch.setattr(Session, "commit", _fail_on_media)
        resp = client.post(
            "/api/media/",
            headers=auth_headers(sender["user_id"]),
            data={"invite_id": invite_id},
            files={"file": ("a.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error"}
        assert [p for p in upload_dir.rglob("*") if p.is_file()] == []
        assert db.query(MediaItem).count() == 0


class TestLocalMediaStorage:

    async def _roundtrip(self, storage):
        url = await storage.save("invite-abc", "user-x", b"data", "photo.jpg")
        await storage.delete(url)
        # deleting twice is harmless
        await storage.delete(url)
        return url

    def test_delete_removes_saved_file(self, tmp_path):
        storage = LocalMediaStorage(str(tmp_path))
        url = asyncio.run(self._roundtrip(storage))
        assert url.startswith("/uploads/invite-abc/media-")
        assert list((tmp_path / "invite-abc").iterdir()) == []

    def test_delete_rejects_foreign_urls(self, tmp_path):
        storage = LocalMediaStorage(str(tmp_path))
        with pytest.raises(ValueError):
            asyncio.run(storage.delete("https://cdn.example.com/x.png"))


class TestDetectMediaType:

    def test_video_content_types(self):
        assert detect_media_type("video/quicktime") == MediaType.video

    def test_everything_else_is_an_image(self):
        assert detect_media_type("image/jpeg") == MediaType.image
        assert detect_media_type(None) == MediaType.image
