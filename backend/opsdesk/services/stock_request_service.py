# Overview: Stock-request ledger: submission, pre-approval item edits and queries.

"""
Stock request ledger.

A request is one of three variants:
- Inbound(items):       adds each line quantity to stock on approval
- Outbound(items):      removes each line quantity from stock on approval
- SelfPurchase(quantity): no line items, never touches stock

Submission never checks stock levels; approval is the enforcement point
(see approval_service). Requests start pending and carry a denormalized
quantity and items_summary that are recomputed from the lines on every edit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from ..extensions import db
from ..models import Product, ShipmentInfo, StockRequest, StockRequestItem, User
from ..models.stock_requests import SHIPPING_FEE_PAYERS, SHIPPING_STATUSES
from ..permissions import SUBMIT_PERMISSION_BY_TYPE
from ..validation import (
    MAX_INT,
    AlreadyProcessedError,
    ConflictError,
    NotFoundError,
    ValidationError,
    optional_date,
    optional_int,
    optional_text,
    positive_int,
)
from . import permission_service
from .concurrency import lock_for_update, run_with_retry
from .request_numbers import default_generator


logger = logging.getLogger(__name__)

SELF_PURCHASE_LABEL = "自购立牌"
REQUEST_NO_ATTEMPTS = 5

# Older clients send in/out
TYPE_ALIASES = {
    "in": "inbound",
    "out": "outbound",
    "inbound": "inbound",
    "outbound": "outbound",
    "self_purchase": "self_purchase",
}


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class Inbound:
    items: tuple
    type = "inbound"


@dataclass(frozen=True)
class Outbound:
    items: tuple
    type = "outbound"


@dataclass(frozen=True)
class SelfPurchase:
    quantity: int
    type = "self_purchase"


@dataclass
class SubmissionMeta:
    merchant: str | None = None
    address: str | None = None
    receiver_name: str | None = None
    receiver_phone: str | None = None
    shipping_fee: str = "receiver"
    remark: str | None = None
    salesman_id: int | None = None


def normalize_type(value) -> str:
    request_type = TYPE_ALIASES.get(str(value).strip().lower()) if value is not None else None
    if not request_type:
        raise ValidationError("type must be one of: inbound, outbound, self_purchase")
    return request_type


def _parse_line_items(raw_items) -> tuple:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")
    lines = []
    seen = set()
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object with productId and quantity")
        product_id = optional_int(raw.get("productId"), "productId")
        if product_id is None:
            raise ValidationError("productId is required for every item")
        if product_id in seen:
            raise ValidationError(f"Product {product_id} appears more than once")
        seen.add(product_id)
        lines.append(LineItem(product_id=product_id, quantity=positive_int(raw.get("quantity"), "quantity")))
    return tuple(lines)


def parse_variant(payload: dict):
    """Build the request variant from a submission body."""
    request_type = normalize_type(payload.get("type"))
    if request_type == "self_purchase":
        return SelfPurchase(quantity=positive_int(payload.get("quantity"), "quantity"))
    lines = _parse_line_items(payload.get("items"))
    if request_type == "inbound":
        return Inbound(items=lines)
    return Outbound(items=lines)


def parse_meta(payload: dict) -> SubmissionMeta:
    shipping_fee = optional_text(payload.get("shippingFee"), "shippingFee") or "receiver"
    if shipping_fee not in SHIPPING_FEE_PAYERS:
        raise ValidationError("shippingFee must be receiver or sender")
    return SubmissionMeta(
        merchant=optional_text(payload.get("merchant"), "merchant", max_length=100),
        address=optional_text(payload.get("address"), "address", max_length=255),
        receiver_name=optional_text(payload.get("receiverName"), "receiverName", max_length=50),
        receiver_phone=optional_text(payload.get("receiverPhone"), "receiverPhone", max_length=20),
        shipping_fee=shipping_fee,
        remark=optional_text(payload.get("remark"), "remark"),
        salesman_id=optional_int(payload.get("salesmanId"), "salesmanId"),
    )


def summarize_items(lines) -> str:
    """
    Display summary for (name, quantity) pairs: "A x3, B x5".

    Used at submission and after every item edit.
    """
    return ", ".join(f"{name} x{quantity}" for name, quantity in lines)


def self_purchase_summary(quantity: int) -> str:
    return f"{SELF_PURCHASE_LABEL} x{quantity}"


def refresh_totals(request: StockRequest) -> None:
    """Recompute quantity and items_summary from the request's lines."""
    if request.type == "self_purchase":
        request.items_summary = self_purchase_summary(request.quantity)
        return
    total = sum(item.quantity for item in request.items)
    if total > MAX_INT:
        raise ValidationError(f"Total quantity must not exceed {MAX_INT}")
    request.quantity = total
    request.items_summary = summarize_items((item.product_name, item.quantity) for item in request.items)


def variant_of(request: StockRequest):
    """Rebuild the variant of a persisted request."""
    if request.type == "self_purchase":
        return SelfPurchase(quantity=request.quantity)
    lines = tuple(LineItem(product_id=i.product_id, quantity=i.quantity) for i in request.items)
    if request.type == "inbound":
        return Inbound(items=lines)
    if request.type == "outbound":
        return Outbound(items=lines)
    raise ValidationError(f"Unknown request type {request.type!r}")


def _next_request_no(generator) -> str:
    for _ in range(REQUEST_NO_ATTEMPTS):
        candidate = generator()
        taken = db.session.query(StockRequest.id).filter_by(request_no=candidate).first()
        if not taken:
            return candidate
        logger.warning("Request number collision on %s, retrying", candidate)
    raise ConflictError("Could not allocate a unique request number")


def submit(
    submitter: User,
    variant,
    meta: SubmissionMeta | None = None,
    *,
    user_permissions: set[str] | None = None,
    resource: str | None = None,
    number_generator=None,
) -> StockRequest:
    """
    Persist a pending request for the variant.

    Checks the variant's submit permission first, then that every product
    exists. Stock levels are not checked here.

    Raises:
        PermissionDeniedError, ValidationError, NotFoundError, ConflictError
    """
    meta = meta or SubmissionMeta()
    generator = number_generator or default_generator

    permission_service.require(
        submitter.id,
        SUBMIT_PERMISSION_BY_TYPE[variant.type],
        user_permissions=user_permissions,
        resource=resource,
        message="You do not have permission to submit this type of request",
    )

    def _op():
        salesman_name = None
        if meta.salesman_id is not None:
            salesman = db.session.get(User, meta.salesman_id)
            if not salesman:
                raise NotFoundError(f"Salesman {meta.salesman_id} not found")
            salesman_name = salesman.display_name

        request = StockRequest(
            request_no=_next_request_no(generator),
            type=variant.type,
            status="pending",
            submitter_id=submitter.id,
            submitter_name=submitter.display_name,
            salesman_id=meta.salesman_id,
            salesman_name=salesman_name,
            merchant=meta.merchant,
            address=meta.address,
            receiver_name=meta.receiver_name,
            receiver_phone=meta.receiver_phone,
            shipping_fee=meta.shipping_fee,
            remark=meta.remark,
        )

        if isinstance(variant, SelfPurchase):
            request.quantity = variant.quantity
        else:
            for line in variant.items:
                product = db.session.get(Product, line.product_id)
                if not product:
                    raise NotFoundError(f"Product {line.product_id} not found")
                request.items.append(
                    StockRequestItem(
                        product_id=product.id,
                        product_name=product.name,
                        product_unit=product.unit,
                        quantity=line.quantity,
                    )
                )

        refresh_totals(request)
        db.session.add(request)
        db.session.flush()
        logger.info(
            "Submitted %s request %s by user %s (qty %s)",
            request.type, request.request_no, submitter.id, request.quantity,
        )
        return request

    return run_with_retry(_op)


def edit_items(request_id: int, raw_items) -> StockRequest:
    """
    Change line quantities of a pending request.

    raw_items: [{"id": <item id>, "quantity": >= 1}]. Lines not mentioned keep
    their quantity. Totals and summary are recomputed.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")
    updates = {}
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object with id and quantity")
        item_id = optional_int(raw.get("id"), "id")
        if item_id is None:
            raise ValidationError("id is required for every item")
        updates[item_id] = positive_int(raw.get("quantity"), "quantity")

    def _op():
        request = lock_for_update(db.session.query(StockRequest).filter_by(id=request_id)).first()
        if not request:
            raise NotFoundError("Stock request not found")
        if request.status != "pending":
            raise AlreadyProcessedError("Request has already been processed")
        if request.type == "self_purchase":
            raise ValidationError("Self-purchase requests have no editable items")

        by_id = {item.id: item for item in request.items}
        foreign = [item_id for item_id in updates if item_id not in by_id]
        if foreign:
            raise ValidationError(f"Items do not belong to this request: {foreign}")

        for item_id, quantity in updates.items():
            by_id[item_id].quantity = quantity

        refresh_totals(request)
        db.session.flush()
        logger.info("Edited items of request %s: %s", request.request_no, request.items_summary)
        return request

    return run_with_retry(_op)


def get_request(request_id: int) -> StockRequest:
    request = db.session.get(StockRequest, request_id)
    if not request:
        raise NotFoundError("Stock request not found")
    return request


def can_view(request: StockRequest, user_id: int, user_permissions: set[str]) -> bool:
    if request.submitter_id == user_id:
        return True
    return permission_service.check(user_permissions, ("stock_view_all", "stock_approve", "shipping_manage"))


def _apply_keyword(query, keyword):
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(
            db.or_(
                StockRequest.request_no.like(like),
                StockRequest.merchant.like(like),
                StockRequest.items_summary.like(like),
            )
        )
    return query


def list_requests(
    *,
    viewer_id: int,
    can_view_all: bool,
    only_mine: bool = False,
    status: str | None = None,
    request_type: str | None = None,
    start_date=None,
    end_date=None,
    keyword: str | None = None,
    page: int = 1,
    page_size: int = 20,
):
    """Newest first. Viewers without stock_view_all only see their own submissions."""
    query = db.session.query(StockRequest)
    if only_mine or not can_view_all:
        query = query.filter(StockRequest.submitter_id == viewer_id)
    if status:
        query = query.filter(StockRequest.status == status)
    if request_type:
        query = query.filter(StockRequest.type == normalize_type(request_type))
    start = optional_date(start_date, "startDate")
    end = optional_date(end_date, "endDate")
    if start:
        query = query.filter(StockRequest.created_at >= datetime.combine(start, time.min))
    if end:
        query = query.filter(StockRequest.created_at < datetime.combine(end + timedelta(days=1), time.min))
    query = _apply_keyword(query, keyword)

    total = query.count()
    rows = query.order_by(StockRequest.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def list_pending(*, page: int = 1, page_size: int = 20):
    query = db.session.query(StockRequest).filter(StockRequest.status == "pending")
    total = query.count()
    rows = query.order_by(StockRequest.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def list_approved_for_shipping(
    *,
    shipping_status: str | None = None,
    keyword: str | None = None,
    page: int = 1,
    page_size: int = 20,
):
    """
    Approved outbound/self-purchase requests with their shipment columns.

    shipping_status "none" selects requests without any shipment row.
    """
    query = (
        db.session.query(StockRequest)
        .outerjoin(ShipmentInfo, ShipmentInfo.request_id == StockRequest.id)
        .filter(StockRequest.status == "approved", StockRequest.type.in_(("outbound", "self_purchase")))
    )
    if shipping_status:
        if shipping_status == "none":
            query = query.filter(ShipmentInfo.id.is_(None))
        elif shipping_status in SHIPPING_STATUSES:
            query = query.filter(ShipmentInfo.shipping_status == shipping_status)
        else:
            raise ValidationError("shippingStatus must be none, pending, shipped or delivered")
    query = _apply_keyword(query, keyword)

    total = query.count()
    rows = (
        query.order_by(StockRequest.approved_at.desc(), StockRequest.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return rows, total
