# Overview: Shipment tracker: one delivery record per approved outbound/self-purchase request.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import ShipmentInfo, StockRequest
from ..models.stock_requests import SHIPPING_STATUSES
from ..validation import NotEligibleError, NotFoundError, ValidationError, optional_text
from opsdesk.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


logger = logging.getLogger(__name__)

SHIPPABLE_TYPES = ("outbound", "self_purchase")


def upsert_shipment(request_id: int, payload: dict, operator_id: int) -> ShipmentInfo:
    """
    Create or overwrite the shipment row of a request.

    Every write replaces all shipment fields; address and receiver fall back
    to the request's own values when omitted. Any status may follow any
    other. shipped_at is stamped each time a write sets status to shipped
    and is left alone otherwise.
    """
    status = payload.get("shippingStatus") or "pending"
    if status not in SHIPPING_STATUSES:
        raise ValidationError("shippingStatus must be pending, shipped or delivered")

    def _op():
        request = lock_for_update(db.session.query(StockRequest).filter_by(id=request_id)).first()
        if not request:
            raise NotFoundError("Stock request not found")
        if request.status != "approved":
            raise NotEligibleError("Shipping info can only be recorded for approved requests")
        if request.type not in SHIPPABLE_TYPES:
            raise NotEligibleError("Inbound requests are not shipped")

        shipment = lock_for_update(db.session.query(ShipmentInfo).filter_by(request_id=request.id)).first()
        created = shipment is None
        if created:
            shipment = ShipmentInfo(request_id=request.id)
            db.session.add(shipment)

        shipment.shipping_status = status
        shipment.tracking_no = optional_text(payload.get("trackingNo"), "trackingNo", max_length=100)
        shipment.courier_company = optional_text(payload.get("courierCompany"), "courierCompany", max_length=50)
        shipment.shipping_address = (
            optional_text(payload.get("shippingAddress"), "shippingAddress", max_length=255) or request.address
        )
        shipment.receiver_name = (
            optional_text(payload.get("receiverName"), "receiverName", max_length=50) or request.receiver_name
        )
        shipment.receiver_phone = (
            optional_text(payload.get("receiverPhone"), "receiverPhone", max_length=20) or request.receiver_phone
        )
        shipment.remark = optional_text(payload.get("remark"), "remark")
        shipment.operator_id = operator_id
        if status == "shipped":
            shipment.shipped_at = utcnow()

        db.session.flush()
        logger.info(
            "%s shipment for request %s: %s",
            "Created" if created else "Updated", request.request_no, status,
        )
        return shipment

    return run_with_retry(_op)
