"""
Shipment tracker tests.

Verifies:
- Only approved outbound/self-purchase requests accept shipment info
- Upsert keeps one row per request and falls back to request address fields
- shipped_at is stamped on every write that sets status to shipped
"""

import pytest

from opsdesk.models import ShipmentInfo
from opsdesk.services import approval_service, shipment_service, stock_request_service as ledger
from opsdesk.services.stock_request_service import Inbound, LineItem, Outbound, SelfPurchase, SubmissionMeta
from opsdesk.validation import NotEligibleError, NotFoundError, ValidationError


ALL_SUBMIT = {"stock_add", "stock_reduce"}


@pytest.fixture
def people(make_user):
    return (
        make_user("sam", ["stock_add", "stock_reduce"]),
        make_user("ann", ["stock_approve"]),
        make_user("sid", ["shipping_manage"]),
    )


def _approved(db_session, people, variant, meta=None):
    submitter, approver, _ = people
    request = ledger.submit(submitter, variant, meta, user_permissions=ALL_SUBMIT)
    db_session.commit()
    approval_service.approve(request.id, approver)
    db_session.commit()
    return request


class TestEligibility:

    def test_pending_request_rejected(self, db_session, people):
        submitter, _, shipper = people
        request = ledger.submit(submitter, SelfPurchase(quantity=1), user_permissions=ALL_SUBMIT)
        db_session.commit()

        with pytest.raises(NotEligibleError):
            shipment_service.upsert_shipment(request.id, {}, shipper.id)

    def test_rejected_request_rejected(self, db_session, people):
        submitter, approver, shipper = people
        request = ledger.submit(submitter, SelfPurchase(quantity=1), user_permissions=ALL_SUBMIT)
        db_session.commit()
        approval_service.reject(request.id, approver, "no")
        db_session.commit()

        with pytest.raises(NotEligibleError):
            shipment_service.upsert_shipment(request.id, {}, shipper.id)

    def test_inbound_is_never_shipped(self, db_session, people, make_product):
        alpha = make_product("Alpha", stock=0)
        request = _approved(db_session, people, Inbound(items=(LineItem(alpha.id, 1),)))

        with pytest.raises(NotEligibleError):
            shipment_service.upsert_shipment(request.id, {}, people[2].id)

    def test_missing_request(self, db_session, people):
        with pytest.raises(NotFoundError):
            shipment_service.upsert_shipment(55555, {}, people[2].id)

    def test_invalid_status(self, db_session, people):
        request = _approved(db_session, people, SelfPurchase(quantity=1))
        with pytest.raises(ValidationError):
            shipment_service.upsert_shipment(request.id, {"shippingStatus": "lost"}, people[2].id)


class TestUpsert:

    def test_defaults_and_fallbacks(self, db_session, people, make_product):
        alpha = make_product("Alpha", stock=5)
        meta = SubmissionMeta(address="1 Main St", receiver_name="Ron", receiver_phone="13800000000")
        request = _approved(db_session, people, Outbound(items=(LineItem(alpha.id, 1),)), meta)

        shipment = shipment_service.upsert_shipment(request.id, {"trackingNo": "SF123"}, people[2].id)
        db_session.commit()

        assert shipment.shipping_status == "pending"
        assert shipment.tracking_no == "SF123"
        assert shipment.shipping_address == "1 Main St"
        assert shipment.receiver_name == "Ron"
        assert shipment.receiver_phone == "13800000000"
        assert shipment.shipped_at is None
        assert shipment.operator_id == people[2].id

    def test_one_row_per_request(self, db_session, people):
        request = _approved(db_session, people, SelfPurchase(quantity=2))

        first = shipment_service.upsert_shipment(request.id, {"trackingNo": "A1"}, people[2].id)
        db_session.commit()
        second = shipment_service.upsert_shipment(
            request.id, {"trackingNo": "B2", "shippingAddress": "2 Side St"}, people[2].id
        )
        db_session.commit()

        assert first.id == second.id
        assert db_session.query(ShipmentInfo).filter_by(request_id=request.id).count() == 1
        assert second.tracking_no == "B2"
        assert second.shipping_address == "2 Side St"

    def test_shipped_at_stamped_and_kept(self, db_session, people):
        request = _approved(db_session, people, SelfPurchase(quantity=2))

        shipped = shipment_service.upsert_shipment(request.id, {"shippingStatus": "shipped"}, people[2].id)
        db_session.commit()
        stamped = shipped.shipped_at
        assert stamped is not None

        delivered = shipment_service.upsert_shipment(request.id, {"shippingStatus": "delivered"}, people[2].id)
        db_session.commit()
        assert delivered.shipping_status == "delivered"
        assert delivered.shipped_at == stamped

    def test_status_can_move_backwards(self, db_session, people):
        request = _approved(db_session, people, SelfPurchase(quantity=2))
        shipment_service.upsert_shipment(request.id, {"shippingStatus": "delivered"}, people[2].id)
        db_session.commit()

        shipment = shipment_service.upsert_shipment(request.id, {"shippingStatus": "pending"}, people[2].id)
        db_session.commit()
        assert shipment.shipping_status == "pending"
