"""
Stock request API tests.

Walks the request lifecycle over HTTP: submit, review queue, edit,
approve/reject, visibility and shipping, checking status codes and
envelopes along the way.
"""

import re

import pytest

from opsdesk.models import Product, StockRequest


@pytest.fixture
def alpha(make_product):
    return make_product("Alpha", stock=10, sku="ALP-1")


@pytest.fixture
def seller(make_user, login):
    user = make_user("sam", ["stock_add", "stock_reduce"])
    return user, login(user)


@pytest.fixture
def approver(make_user, login):
    user = make_user("ann", ["stock_approve"], user_type="leader")
    return user, login(user)


@pytest.fixture
def shipper(make_user, login):
    user = make_user("sid", ["shipping_manage"], user_type="deliver")
    return user, login(user)


def _submit(client, headers, body):
    resp = client.post("/api/stock-requests", json=body, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json["data"]


def _outbound(product, quantity, **extra):
    body = {"type": "outbound", "items": [{"productId": product.id, "quantity": quantity}]}
    body.update(extra)
    return body


class TestSubmitRoute:

    def test_created_envelope(self, client, db_session, alpha, seller):
        _, headers = seller
        resp = client.post("/api/stock-requests", json=_outbound(alpha, 3), headers=headers)

        assert resp.status_code == 201
        assert resp.json["code"] == 201
        data = resp.json["data"]
        assert re.match(r"^SR\d{8}[0-9A-Z]{6}$", data["requestNo"])
        assert data["itemsSummary"] == "Alpha x3"
        assert data["quantity"] == 3

    @pytest.mark.parametrize(
        "body",
        [
            {"type": "outbound", "items": [{"productId": 1, "quantity": 0}]},
            {"type": "outbound", "items": "Alpha x3"},
            {"type": "teleport", "quantity": 1},
            {"type": "self_purchase", "quantity": 1.5},
            {"type": "inbound", "items": [{"productId": 1, "quantity": 100000000000000000000}]},
            {"type": "self_purchase", "quantity": 2 ** 31},
        ],
    )
    def test_invalid_body(self, client, db_session, seller, body):
        resp = client.post("/api/stock-requests", json=body, headers=seller[1])
        assert resp.status_code == 400
        assert resp.json["code"] == 400

    def test_unknown_product(self, client, db_session, seller):
        resp = client.post(
            "/api/stock-requests",
            json={"type": "inbound", "items": [{"productId": 987654, "quantity": 1}]},
            headers=seller[1],
        )
        assert resp.status_code == 404


class TestReviewFlow:

    def test_pending_queue_shows_current_stock(self, client, db_session, alpha, seller, approver):
        _submit(client, seller[1], _outbound(alpha, 3))

        resp = client.get("/api/stock-requests/pending", headers=approver[1])
        assert resp.status_code == 200
        payload = resp.json["data"]
        assert payload["pagination"] == {"total": 1, "page": 1, "pageSize": 20, "totalPages": 1}
        item = payload["list"][0]["items"][0]
        assert item["currentStock"] == 10
        assert item["productSku"] == "ALP-1"

    def test_approve_applies_stock(self, client, db_session, alpha, seller, approver):
        created = _submit(client, seller[1], _outbound(alpha, 3))

        resp = client.post(
            f"/api/stock-requests/{created['id']}/approve", json={"approved": True}, headers=approver[1]
        )
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "approved"

        db_session.expire_all()
        assert db_session.get(Product, alpha.id).stock == 7

    def test_insufficient_stock_is_400_with_details(self, client, db_session, alpha, seller, approver):
        created = _submit(client, seller[1], _outbound(alpha, 11))

        resp = client.post(
            f"/api/stock-requests/{created['id']}/approve", json={"approved": True}, headers=approver[1]
        )
        assert resp.status_code == 400
        assert resp.json["data"]["productName"] == "Alpha"
        assert resp.json["data"]["available"] == 10

        detail = client.get(f"/api/stock-requests/{created['id']}", headers=approver[1]).json["data"]
        assert detail["status"] == "pending"

    def test_second_decision_is_rejected(self, client, db_session, alpha, seller, approver):
        created = _submit(client, seller[1], _outbound(alpha, 1))
        url = f"/api/stock-requests/{created['id']}/approve"

        first = client.post(url, json={"approved": False, "rejectReason": "duplicate"}, headers=approver[1])
        assert first.status_code == 200
        assert first.json["data"]["rejectReason"] == "duplicate"

        second = client.post(url, json={"approved": True}, headers=approver[1])
        assert second.status_code == 400

    def test_reject_without_reason(self, client, db_session, alpha, seller, approver):
        created = _submit(client, seller[1], _outbound(alpha, 1))
        resp = client.post(
            f"/api/stock-requests/{created['id']}/approve", json={"approved": False}, headers=approver[1]
        )
        assert resp.status_code == 400

    def test_unknown_request(self, client, db_session, approver):
        resp = client.post("/api/stock-requests/999999/approve", json={"approved": True}, headers=approver[1])
        assert resp.status_code == 404

    def test_edit_items_then_approve(self, client, db_session, alpha, seller, approver):
        created = _submit(client, seller[1], _outbound(alpha, 9))
        detail = client.get(f"/api/stock-requests/{created['id']}", headers=approver[1]).json["data"]
        item_id = detail["items"][0]["id"]

        resp = client.put(
            f"/api/stock-requests/{created['id']}/items",
            json={"items": [{"id": item_id, "quantity": 4}]},
            headers=approver[1],
        )
        assert resp.status_code == 200
        assert resp.json["data"]["itemsSummary"] == "Alpha x4"

        client.post(f"/api/stock-requests/{created['id']}/approve", json={"approved": True}, headers=approver[1])
        db_session.expire_all()
        assert db_session.get(Product, alpha.id).stock == 6

    def test_failed_commit_is_reported_and_nothing_persists(
        self, client, db_session, alpha, seller, approver, fail_commit_when
    ):
        created = _submit(client, seller[1], _outbound(alpha, 4))
        fail_commit_when(lambda: db_session.get(StockRequest, created["id"]).status == "approved")

        resp = client.post(
            f"/api/stock-requests/{created['id']}/approve", json={"approved": True}, headers=approver[1]
        )
        assert resp.status_code == 500
        assert resp.json["code"] == 500

        db_session.expire_all()
        assert db_session.get(StockRequest, created["id"]).status == "pending"
        assert db_session.get(Product, alpha.id).stock == 10

        retry = client.post(
            f"/api/stock-requests/{created['id']}/approve", json={"approved": True}, headers=approver[1]
        )
        assert retry.status_code == 200
        assert retry.json["message"] == "Request approved"
        db_session.expire_all()
        assert db_session.get(Product, alpha.id).stock == 6


class TestVisibility:

    def test_submitter_sees_own_request(self, client, db_session, alpha, seller):
        created = _submit(client, seller[1], _outbound(alpha, 1))
        resp = client.get(f"/api/stock-requests/{created['id']}", headers=seller[1])
        assert resp.status_code == 200
        assert resp.json["data"]["requestNo"] == created["requestNo"]

    def test_other_user_is_denied(self, client, db_session, alpha, seller, make_user, login):
        created = _submit(client, seller[1], _outbound(alpha, 1))
        other = login(make_user("oscar", ["stock_reduce"]))
        resp = client.get(f"/api/stock-requests/{created['id']}", headers=other)
        assert resp.status_code == 403

    def test_list_limited_without_view_all(self, client, db_session, alpha, seller, make_user, login):
        _submit(client, seller[1], _outbound(alpha, 1))
        other_user = make_user("oscar", ["stock_reduce"])
        other = login(other_user)
        _submit(client, other, _outbound(alpha, 2))

        mine = client.get("/api/stock-requests", headers=other).json["data"]
        assert mine["pagination"]["total"] == 1
        assert mine["list"][0]["submitterId"] == other_user.id

        viewer = login(make_user("vera", ["stock_view_all"]))
        everything = client.get("/api/stock-requests", headers=viewer).json["data"]
        assert everything["pagination"]["total"] == 2

        only_mine = client.get("/api/stock-requests?my=1", headers=viewer).json["data"]
        assert only_mine["pagination"]["total"] == 0

    def test_filters(self, client, db_session, alpha, seller, make_user, login):
        _submit(client, seller[1], _outbound(alpha, 1, merchant="Corner Shop"))
        _submit(client, seller[1], {"type": "in", "items": [{"productId": alpha.id, "quantity": 5}]})
        _submit(client, seller[1], {"type": "self_purchase", "quantity": 2})

        def total(query):
            return client.get(f"/api/stock-requests?{query}", headers=seller[1]).json["data"]["pagination"]["total"]

        assert total("type=inbound") == 1
        assert total("type=out") == 1
        assert total("keyword=Corner") == 1
        assert total("status=pending") == 3
        assert total("pageSize=2") == 3

    def test_bad_page_size(self, client, db_session, seller):
        resp = client.get("/api/stock-requests?pageSize=5000", headers=seller[1])
        assert resp.status_code == 400


class TestShippingRoutes:

    def _approved(self, client, alpha, seller, approver, **extra):
        created = _submit(client, seller[1], _outbound(alpha, 1, **extra))
        client.post(f"/api/stock-requests/{created['id']}/approve", json={"approved": True}, headers=approver[1])
        return created

    def test_approved_queue_and_upsert(self, client, db_session, alpha, seller, approver, shipper):
        created = self._approved(client, alpha, seller, approver, address="1 Main St")

        queue = client.get("/api/stock-requests/approved?shippingStatus=none", headers=shipper[1]).json["data"]
        assert [r["id"] for r in queue["list"]] == [created["id"]]
        assert queue["list"][0]["shipping"] is None

        resp = client.post(
            f"/api/stock-requests/{created['id']}/shipping",
            json={"shippingStatus": "shipped", "trackingNo": "SF1", "courierCompany": "SF"},
            headers=shipper[1],
        )
        assert resp.status_code == 200
        assert resp.json["data"]["shippingAddress"] == "1 Main St"
        assert resp.json["data"]["shippedAt"] is not None

        unshipped = client.get("/api/stock-requests/approved?shippingStatus=none", headers=shipper[1]).json["data"]
        assert unshipped["pagination"]["total"] == 0
        shipped = client.get("/api/stock-requests/approved?shippingStatus=shipped", headers=shipper[1]).json["data"]
        assert shipped["list"][0]["shipping"]["trackingNo"] == "SF1"

    def test_pending_request_not_shippable(self, client, db_session, alpha, seller, shipper):
        created = _submit(client, seller[1], _outbound(alpha, 1))
        resp = client.post(f"/api/stock-requests/{created['id']}/shipping", json={}, headers=shipper[1])
        assert resp.status_code == 400

    def test_unknown_shipping_filter(self, client, db_session, shipper):
        resp = client.get("/api/stock-requests/approved?shippingStatus=lost", headers=shipper[1])
        assert resp.status_code == 400
