"""
Media quota tests.

Verifies:
- Direct and presigned uploads are recorded against today's quota
- Leader team views and media_view_team visibility
- Deletion rights and tolerance of storage failures
- Stored objects are only removed once the record delete is committed
"""

import io

import pytest

from opsdesk.models import MediaUpload
from opsdesk.time_utils import today


@pytest.fixture
def leader(make_user, login):
    user = make_user("lena", ["media_upload"], user_type="leader")
    return user, login(user)


@pytest.fixture
def member(make_user, login, leader):
    user = make_user("milo", ["media_upload"], leader=leader[0])
    return user, login(user)


def _upload(client, headers, name="shot.jpg", content_type="image/jpeg", body=b"\xff\xd8jpeg"):
    return client.post(
        "/api/media/upload",
        data={"file": (io.BytesIO(body), name, content_type)},
        content_type="multipart/form-data",
        headers=headers,
    )


class TestUploads:

    def test_direct_upload(self, client, db_session, blob_store, member):
        user, headers = member
        resp = _upload(client, headers)

        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["key"].startswith(f"media/{user.id}/")
        assert data["key"].endswith(".jpg")
        assert data["fileType"] == "image"
        assert data["leaderId"] == user.leader_id
        assert data["uploadDate"] == today().isoformat()
        assert data["url"].startswith("https://blob.test/")
        assert blob_store.objects[data["key"]][1] == "image/jpeg"

    def test_video_type(self, client, db_session, member):
        resp = _upload(client, member[1], name="clip.mp4", content_type="video/mp4")
        assert resp.json["data"]["fileType"] == "video"

    def test_unsupported_type(self, client, db_session, blob_store, member):
        resp = _upload(client, member[1], name="notes.txt", content_type="text/plain")
        assert resp.status_code == 400
        assert blob_store.objects == {}

    def test_missing_file(self, client, db_session, member):
        resp = client.post("/api/media/upload", data={}, content_type="multipart/form-data", headers=member[1])
        assert resp.status_code == 400

    def test_presign_then_confirm(self, client, db_session, member):
        user, headers = member
        presigned = client.post(
            "/api/media/upload-url", json={"filename": "a.png", "contentType": "image/png"}, headers=headers
        ).json["data"]
        assert presigned["key"].startswith(f"media/{user.id}/")
        assert "op=write" in presigned["uploadUrl"]

        resp = client.post(
            "/api/media/confirm",
            json={"key": presigned["key"], "fileName": "a.png", "fileType": "image", "fileSize": 1234},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json["data"]["fileSize"] == 1234

    @pytest.mark.parametrize("file_size", [True, 12.5, "12.0", "1e3", -1, 2 ** 31])
    def test_confirm_rejects_bad_file_size(self, client, db_session, member, file_size):
        user, headers = member
        resp = client.post(
            "/api/media/confirm",
            json={"key": f"media/{user.id}/2026/10/16/1-abc.png", "fileName": "a.png", "fileSize": file_size},
            headers=headers,
        )
        assert resp.status_code == 400
        assert db_session.query(MediaUpload).count() == 0

    def test_confirm_rejects_foreign_key(self, client, db_session, member, leader):
        resp = client.post(
            "/api/media/confirm",
            json={"key": f"media/{leader[0].id}/2026/10/16/1-abc.png", "fileName": "a.png"},
            headers=member[1],
        )
        assert resp.status_code == 400


class TestQuota:

    def test_my_uploads_stats(self, client, db_session, member):
        for _ in range(2):
            _upload(client, member[1])

        data = client.get("/api/media/my", headers=member[1]).json["data"]
        assert data["pagination"]["total"] == 2
        assert data["stats"] == {"todayCount": 2, "dailyTarget": 3, "completed": False}

        _upload(client, member[1])
        data = client.get("/api/media/my", headers=member[1]).json["data"]
        assert data["stats"]["completed"] is True

    def test_my_stats(self, client, db_session, member):
        _upload(client, member[1])
        data = client.get("/api/media/my-stats", headers=member[1]).json["data"]
        assert data["dailyStats"] == [{"uploadDate": today().isoformat(), "count": 1}]
        assert data["today"] == {"count": 1, "target": 3, "completed": False}


class TestTeamViews:

    def test_leader_sees_own_team_only(self, client, db_session, leader, member, make_user, login):
        outsider = login(make_user("olga", ["media_upload"]))
        _upload(client, member[1])
        _upload(client, outsider)

        team = client.get("/api/media/team", headers=leader[1]).json["data"]
        assert [u["userId"] for u in team["list"]] == [member[0].id]

        stats = client.get("/api/media/team-stats", headers=leader[1]).json["data"]
        assert [s["userId"] for s in stats["salesmen"]] == [member[0].id]
        assert stats["salesmen"][0]["uploadCount"] == 1
        assert stats["total"] == {"count": 1, "targetDate": today().isoformat()}

    def test_view_team_sees_everyone(self, client, db_session, member, make_user, login):
        outsider = login(make_user("olga", ["media_upload"]))
        _upload(client, member[1])
        _upload(client, outsider)
        _upload(client, outsider)

        headers = login(make_user("hq", ["media_view_team"], user_type="admin"))
        team = client.get("/api/media/team", headers=headers).json["data"]
        assert team["pagination"]["total"] == 3

        stats = client.get("/api/media/team-stats", headers=headers).json["data"]
        assert [s["username"] for s in stats["salesmen"]] == ["olga", "milo"]
        assert stats["total"]["count"] == 3


class TestDeletion:

    def test_owner_deletes(self, client, db_session, blob_store, member):
        upload = _upload(client, member[1]).json["data"]
        resp = client.delete(f"/api/media/{upload['id']}", headers=member[1])
        assert resp.status_code == 200
        assert resp.json["data"] == {"objectRemoved": True}
        assert upload["key"] not in blob_store.objects

    def test_leader_deletes(self, client, db_session, leader, member):
        upload = _upload(client, member[1]).json["data"]
        assert client.delete(f"/api/media/{upload['id']}", headers=leader[1]).status_code == 200

    def test_stranger_cannot_delete(self, client, db_session, member, make_user, login):
        upload = _upload(client, member[1]).json["data"]
        stranger = login(make_user("sly", ["media_upload"]))
        assert client.delete(f"/api/media/{upload['id']}", headers=stranger).status_code == 403

    def test_storage_failure_still_deletes_record(self, client, db_session, blob_store, member):
        upload = _upload(client, member[1]).json["data"]
        blob_store.fail_deletes = True

        resp = client.delete(f"/api/media/{upload['id']}", headers=member[1])
        assert resp.status_code == 200
        assert resp.json["data"] == {"objectRemoved": False}
        assert db_session.query(MediaUpload).count() == 0

    def test_failed_commit_keeps_record_and_object(self, client, db_session, blob_store, member, fail_commit_when):
        upload = _upload(client, member[1]).json["data"]
        fail_commit_when(lambda: db_session.query(MediaUpload).count() == 0)

        resp = client.delete(f"/api/media/{upload['id']}", headers=member[1])
        assert resp.status_code == 500
        assert db_session.query(MediaUpload).count() == 1
        assert upload["key"] in blob_store.objects
