# Overview: Approval engine: resolves pending stock requests and applies their stock effect.

"""
Approval engine.

STATE MACHINE:
    pending --approve--> approved   (stock applied)
    pending --approve--> pending    (insufficient stock; error raised, nothing written)
    pending --reject---> rejected   (no stock effect)
approved and rejected are terminal.

ATOMICITY:
The request row and every product row it references are locked (ascending
product id) before stock is checked. All checks run before any mutation, and
the route commits stock deltas plus the status flip together; any error rolls
the whole unit back.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product, StockRequest, User
from ..validation import (
    MAX_INT,
    AlreadyProcessedError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from opsdesk.time_utils import utcnow
from .catalog_service import adjust_stock
from .concurrency import lock_for_update, lock_rows_in_order, run_with_retry
from .stock_request_service import Inbound, Outbound, SelfPurchase, variant_of


logger = logging.getLogger(__name__)


def _lock_pending(request_id: int) -> StockRequest:
    request = lock_for_update(db.session.query(StockRequest).filter_by(id=request_id)).first()
    if not request:
        raise NotFoundError("Stock request not found")
    if request.status != "pending":
        raise AlreadyProcessedError("Request has already been processed")
    return request


def _stamp(request: StockRequest, approver: User, status: str) -> None:
    request.status = status
    request.approver_id = approver.id
    request.approver_name = approver.display_name
    request.approved_at = utcnow()


def _apply_stock(request: StockRequest, variant) -> dict[int, int]:
    """Check then apply line deltas. Returns {product_id: new_stock}."""
    products = lock_rows_in_order(Product, [line.product_id for line in variant.items])
    for line in variant.items:
        if line.product_id not in products:
            raise NotFoundError(f"Product {line.product_id} not found")

    if isinstance(variant, Outbound):
        for line in variant.items:
            product = products[line.product_id]
            if line.quantity > product.stock:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}: requested {line.quantity}, available {product.stock}",
                    data={
                        "productId": product.id,
                        "productName": product.name,
                        "requested": line.quantity,
                        "available": product.stock,
                    },
                )
    else:
        for line in variant.items:
            product = products[line.product_id]
            if product.stock + line.quantity > MAX_INT:
                raise ValidationError(
                    f"Stock for {product.name} would exceed {MAX_INT}",
                    data={"productId": product.id, "productName": product.name},
                )

    sign = 1 if isinstance(variant, Inbound) else -1
    new_stock = {}
    for line in variant.items:
        new_stock[line.product_id] = adjust_stock(products[line.product_id], sign * line.quantity)
    return new_stock


def approve(request_id: int, approver: User) -> StockRequest:
    """
    Approve a pending request.

    Raises:
        NotFoundError, AlreadyProcessedError, InsufficientStockError
    """
    def _op():
        request = _lock_pending(request_id)
        variant = variant_of(request)

        if isinstance(variant, SelfPurchase):
            new_stock = {}
        elif isinstance(variant, (Inbound, Outbound)):
            new_stock = _apply_stock(request, variant)
        else:
            raise ValidationError(f"Unsupported request type {request.type!r}")

        _stamp(request, approver, "approved")
        db.session.flush()
        logger.info(
            "Approved %s request %s by user %s; stock now %s",
            request.type, request.request_no, approver.id, new_stock,
        )
        return request

    return run_with_retry(_op)


def reject(request_id: int, approver: User, reason) -> StockRequest:
    """Reject a pending request with a non-empty reason. No stock effect."""
    reason = str(reason).strip() if reason is not None else ""
    if not reason:
        raise ValidationError("rejectReason is required when rejecting")

    def _op():
        request = _lock_pending(request_id)
        _stamp(request, approver, "rejected")
        request.reject_reason = reason[:255]
        db.session.flush()
        logger.info("Rejected request %s by user %s: %s", request.request_no, approver.id, reason)
        return request

    return run_with_retry(_op)


def decide(request_id: int, approver: User, approved, reject_reason=None) -> StockRequest:
    """Entry point for {approved, rejectReason} bodies."""
    if not isinstance(approved, bool):
        raise ValidationError("approved must be true or false")
    if approved:
        return approve(request_id, approver)
    return reject(request_id, approver, reject_reason)
