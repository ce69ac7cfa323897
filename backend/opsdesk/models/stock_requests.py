from __future__ import annotations

from ..extensions import db
from opsdesk.time_utils import to_utc_z, utcnow


REQUEST_TYPES = ("inbound", "outbound", "self_purchase")
REQUEST_STATUSES = ("pending", "approved", "rejected")
SHIPPING_STATUSES = ("pending", "shipped", "delivered")
SHIPPING_FEE_PAYERS = ("receiver", "sender")


class StockRequest(db.Model):
    """
    A submitted intent to change stock, with one lifecycle status.

    LIFECYCLE:
    - pending -> approved (stock applied) or pending -> rejected
    - approved and rejected are terminal
    - approver_id/approved_at are set iff status != pending

    quantity and items_summary are denormalized from the line items (or the
    literal self-purchase quantity) so lists render without a join.
    """
    __tablename__ = "stock_requests"
    __table_args__ = (
        db.CheckConstraint("type IN ('inbound', 'outbound', 'self_purchase')", name="ck_stock_requests_type"),
        db.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_stock_requests_status"),
        db.Index("ix_stock_requests_status_type", "status", "type"),
        db.Index("ix_stock_requests_submitter", "submitter_id"),
        db.Index("ix_stock_requests_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_no = db.Column(db.String(32), nullable=False, unique=True, index=True)

    type = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending")

    submitter_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    submitter_name = db.Column(db.String(50), nullable=True)
    salesman_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    salesman_name = db.Column(db.String(50), nullable=True)

    approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approver_name = db.Column(db.String(50), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    reject_reason = db.Column(db.String(255), nullable=True)

    merchant = db.Column(db.String(100), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    receiver_name = db.Column(db.String(50), nullable=True)
    receiver_phone = db.Column(db.String(20), nullable=True)
    shipping_fee = db.Column(db.String(20), nullable=False, default="receiver")
    remark = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    items_summary = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "StockRequestItem",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="StockRequestItem.id",
        lazy=True,
    )
    shipment = db.relationship(
        "ShipmentInfo",
        back_populates="request",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<StockRequest id={self.id} no={self.request_no} type={self.type} status={self.status}>"

    def to_dict(self, include_items: bool = True, include_stock: bool = False) -> dict:
        data = {
            "id": self.id,
            "requestNo": self.request_no,
            "type": self.type,
            "status": self.status,
            "submitterId": self.submitter_id,
            "submitterName": self.submitter_name,
            "salesmanId": self.salesman_id,
            "salesmanName": self.salesman_name,
            "approverId": self.approver_id,
            "approverName": self.approver_name,
            "approvedAt": to_utc_z(self.approved_at),
            "rejectReason": self.reject_reason,
            "merchant": self.merchant,
            "address": self.address,
            "receiverName": self.receiver_name,
            "receiverPhone": self.receiver_phone,
            "shippingFee": self.shipping_fee,
            "remark": self.remark,
            "quantity": self.quantity,
            "itemsSummary": self.items_summary,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "shipping": self.shipment.to_dict() if self.shipment else None,
        }
        if include_items:
            data["items"] = [item.to_dict(include_stock=include_stock) for item in self.items]
        return data


class StockRequestItem(db.Model):
    """
    One (product, quantity) line of an inbound/outbound request.

    product_name/product_unit are snapshots taken at submission.
    """
    __tablename__ = "stock_request_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_stock_request_items_quantity_positive"),
        db.UniqueConstraint("request_id", "product_id", name="uq_stock_request_items_request_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(
        db.Integer,
        db.ForeignKey("stock_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(100), nullable=False)
    product_unit = db.Column(db.String(20), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    request = db.relationship("StockRequest", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self, include_stock: bool = False) -> dict:
        data = {
            "id": self.id,
            "requestId": self.request_id,
            "productId": self.product_id,
            "productName": self.product_name,
            "productUnit": self.product_unit,
            "quantity": self.quantity,
        }
        if include_stock:
            data["currentStock"] = self.product.stock if self.product else None
            data["productSku"] = self.product.sku if self.product else None
        return data


class ShipmentInfo(db.Model):
    """
    Delivery tracking, at most one row per request.

    Status moves freely between pending/shipped/delivered once created;
    shipped_at is stamped whenever a write sets status to shipped.
    """
    __tablename__ = "shipping_info"
    __table_args__ = (
        db.UniqueConstraint("request_id", name="uq_shipping_info_request"),
        db.CheckConstraint(
            "shipping_status IN ('pending', 'shipped', 'delivered')",
            name="ck_shipping_info_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(
        db.Integer,
        db.ForeignKey("stock_requests.id", ondelete="CASCADE"),
        nullable=False,
    )

    shipping_status = db.Column(db.String(20), nullable=False, default="pending")
    tracking_no = db.Column(db.String(100), nullable=True)
    courier_company = db.Column(db.String(50), nullable=True)
    shipping_address = db.Column(db.String(255), nullable=True)
    receiver_name = db.Column(db.String(50), nullable=True)
    receiver_phone = db.Column(db.String(20), nullable=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    remark = db.Column(db.Text, nullable=True)

    operator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    request = db.relationship("StockRequest", back_populates="shipment")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requestId": self.request_id,
            "shippingStatus": self.shipping_status,
            "trackingNo": self.tracking_no,
            "courierCompany": self.courier_company,
            "shippingAddress": self.shipping_address,
            "receiverName": self.receiver_name,
            "receiverPhone": self.receiver_phone,
            "shippedAt": to_utc_z(self.shipped_at),
            "remark": self.remark,
            "operatorId": self.operator_id,
            "updatedAt": to_utc_z(self.updated_at),
        }
