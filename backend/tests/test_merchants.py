"""
Merchant intake tests.

Verifies:
- Multipart registration with field and phone validation
- ID card images stored under merchant/{userId}/ and returned as signed URLs
- Review status changes and deletion rights
"""

import io

import pytest

from opsdesk.models import MerchantRegistration


VALID_FORM = {
    "phone": "13812345678",
    "businessScope": "Snacks and drinks",
    "businessName1": "Corner Shop",
    "contactName": "Ron",
    "contactPhone": "15900001111",
}


@pytest.fixture
def agent(make_user, login):
    user = make_user("ada", ["merchant_upload"])
    return user, login(user)


@pytest.fixture
def reviewer(make_user, login):
    user = make_user("rex", ["merchant_view_all"], user_type="admin")
    return user, login(user)


def _register(client, headers, **overrides):
    form = dict(VALID_FORM)
    form.update(overrides)
    return client.post("/api/merchants/register", data=form, content_type="multipart/form-data", headers=headers)


class TestRegister:

    def test_text_only(self, client, db_session, agent):
        resp = _register(client, agent[1])
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["status"] == 0
        assert data["userName"] == "Ada"
        assert data["idCardFrontUrl"] is None

    def test_with_images(self, client, db_session, blob_store, agent):
        user, headers = agent
        resp = _register(
            client,
            headers,
            idCardFront=(io.BytesIO(b"front"), "front.png", "image/png"),
            idCardBack=(io.BytesIO(b"back"), "back.jpg", "image/jpeg"),
        )
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["idCardFrontKey"].startswith(f"merchant/{user.id}/")
        assert data["idCardFrontUrl"].startswith("https://blob.test/merchant/")
        assert len(blob_store.objects) == 2

    @pytest.mark.parametrize(
        "overrides",
        [
            {"phone": "12345"},
            {"phone": "12812345678"},
            {"contactPhone": "1390000111"},
            {"businessName1": ""},
            {"businessScope": ""},
            {"contactName": " "},
        ],
    )
    def test_invalid_fields(self, client, db_session, agent, overrides):
        assert _register(client, agent[1], **overrides).status_code == 400

    def test_non_image_card_rejected_before_storing(self, client, db_session, blob_store, agent):
        resp = _register(client, agent[1], idCardFront=(io.BytesIO(b"%PDF"), "card.pdf", "application/pdf"))
        assert resp.status_code == 400
        assert blob_store.objects == {}
        assert db_session.query(MerchantRegistration).count() == 0


class TestReview:

    def test_listing_and_status(self, client, db_session, agent, reviewer):
        record = _register(client, agent[1]).json["data"]

        mine = client.get("/api/merchants/my", headers=agent[1]).json["data"]
        assert mine["pagination"]["total"] == 1

        everything = client.get("/api/merchants/all?keyword=Corner", headers=reviewer[1]).json["data"]
        assert [r["id"] for r in everything["list"]] == [record["id"]]

        resp = client.put(
            f"/api/merchants/{record['id']}/status", json={"status": 1, "remark": "ok"}, headers=reviewer[1]
        )
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == 1

        approved = client.get("/api/merchants/all?status=1", headers=reviewer[1]).json["data"]
        assert approved["pagination"]["total"] == 1

        submitters = client.get("/api/merchants/submitters", headers=reviewer[1]).json["data"]
        assert submitters == [{"userId": agent[0].id, "userName": "Ada"}]

    def test_invalid_status(self, client, db_session, agent, reviewer):
        record = _register(client, agent[1]).json["data"]
        resp = client.put(f"/api/merchants/{record['id']}/status", json={"status": 5}, headers=reviewer[1])
        assert resp.status_code == 400


class TestDeletion:

    def test_owner_deletes_with_images(self, client, db_session, blob_store, agent):
        record = _register(client, agent[1], idCardFront=(io.BytesIO(b"f"), "f.png", "image/png")).json["data"]
        resp = client.delete(f"/api/merchants/{record['id']}", headers=agent[1])
        assert resp.status_code == 200
        assert resp.json["data"] == {"imagesRemoved": {"idCardFront": True, "idCardBack": False}}
        assert blob_store.objects == {}

    def test_other_agent_cannot_delete(self, client, db_session, agent, make_user, login):
        record = _register(client, agent[1]).json["data"]
        other = login(make_user("bea", ["merchant_upload"]))
        assert client.delete(f"/api/merchants/{record['id']}", headers=other).status_code == 403

    def test_reviewer_deletes(self, client, db_session, agent, reviewer):
        record = _register(client, agent[1]).json["data"]
        assert client.delete(f"/api/merchants/{record['id']}", headers=reviewer[1]).status_code == 200

    def test_failed_commit_keeps_record_and_images(self, client, db_session, blob_store, agent, fail_commit_when):
        record = _register(client, agent[1], idCardFront=(io.BytesIO(b"f"), "f.png", "image/png")).json["data"]
        fail_commit_when(lambda: db_session.query(MerchantRegistration).count() == 0)

        resp = client.delete(f"/api/merchants/{record['id']}", headers=agent[1])
        assert resp.status_code == 500
        assert db_session.query(MerchantRegistration).count() == 1
        assert len(blob_store.objects) == 1
