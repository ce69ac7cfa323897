# Overview: Dashboard counters.

from __future__ import annotations

from datetime import datetime, time, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Product, ShipmentInfo, StockRequest
from opsdesk.time_utils import today


def dashboard() -> dict:
    start = datetime.combine(today(), time.min)
    end = start + timedelta(days=1)

    total_products = db.session.query(func.count(Product.id)).filter(Product.status == 1).scalar()
    pending_requests = (
        db.session.query(func.count(StockRequest.id)).filter(StockRequest.status == "pending").scalar()
    )
    today_approved = (
        db.session.query(func.count(StockRequest.id))
        .filter(
            StockRequest.status == "approved",
            StockRequest.approved_at >= start,
            StockRequest.approved_at < end,
        )
        .scalar()
    )
    pending_shipping = (
        db.session.query(func.count(StockRequest.id))
        .outerjoin(ShipmentInfo, ShipmentInfo.request_id == StockRequest.id)
        .filter(
            StockRequest.status == "approved",
            StockRequest.type.in_(("outbound", "self_purchase")),
            db.or_(ShipmentInfo.id.is_(None), ShipmentInfo.shipping_status == "pending"),
        )
        .scalar()
    )
    low_stock = (
        db.session.query(func.count(Product.id))
        .filter(Product.status == 1, Product.stock <= Product.min_stock)
        .scalar()
    )
    return {
        "totalProducts": total_products,
        "pendingRequests": pending_requests,
        "todayApproved": today_approved,
        "pendingShipping": pending_shipping,
        "lowStockProducts": low_stock,
    }
