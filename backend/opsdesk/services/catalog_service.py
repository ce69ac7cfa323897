# Overview: Product catalogue and the stock primitives the approval engine builds on.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product, StockRequestItem
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_int,
    non_negative_int,
    optional_decimal,
    optional_int,
    optional_text,
    require_text,
)


logger = logging.getLogger(__name__)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def get_stock(product_id: int) -> int:
    return get_product(product_id).stock


def adjust_stock(product: Product, delta: int) -> int:
    """
    Apply a signed stock delta and return the new stock.

    The caller owns the transaction and checks the non-negative invariant
    before calling; the CHECK constraint is the last line of defence.
    """
    product.stock = product.stock + delta
    db.session.flush()
    return product.stock


def list_products(
    *,
    keyword: str | None = None,
    category: str | None = None,
    status: int | None = None,
    low_stock: bool = False,
    page: int = 1,
    page_size: int = 20,
):
    query = db.session.query(Product)
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(db.or_(Product.name.like(like), Product.sku.like(like)))
    if category:
        query = query.filter(Product.category == category)
    if status is not None:
        query = query.filter(Product.status == status)
    if low_stock:
        query = query.filter(Product.stock <= Product.min_stock)
    total = query.count()
    products = query.order_by(Product.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return products, total


def active_products() -> list[dict]:
    """Compact list for pickers."""
    products = db.session.query(Product).filter(Product.status == 1).order_by(Product.name).all()
    return [{"id": p.id, "name": p.name, "sku": p.sku, "stock": p.stock, "unit": p.unit} for p in products]


def categories() -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.category.isnot(None), Product.category != "")
        .distinct()
        .order_by(Product.category)
        .all()
    )
    return [c for (c,) in rows]


def _check_sku_unique(sku: str | None, product_id: int | None = None) -> None:
    if not sku:
        return
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first():
        raise ConflictError("SKU already exists")


def _status(value) -> int:
    status = coerce_int(value, "status")
    if status not in (0, 1):
        raise ValidationError("status must be 0 or 1")
    return status


def create_product(payload: dict, created_by: int) -> Product:
    name = require_text(payload.get("name"), "name", max_length=100)
    sku = optional_text(payload.get("sku"), "sku", max_length=50)
    _check_sku_unique(sku)

    price = optional_decimal(payload.get("price"), "price")
    if price is not None and price < 0:
        raise ValidationError("price must be >= 0")

    product = Product(
        name=name,
        sku=sku,
        category=optional_text(payload.get("category"), "category", max_length=50),
        unit=optional_text(payload.get("unit"), "unit", max_length=20) or "个",
        price=price or 0,
        stock=non_negative_int(payload.get("stock") or 0, "stock"),
        min_stock=non_negative_int(payload.get("minStock") or 0, "minStock"),
        description=optional_text(payload.get("description"), "description"),
        image=optional_text(payload.get("image"), "image", max_length=255),
        status=_status(payload.get("status", 1)),
        created_by=created_by,
    )
    db.session.add(product)
    db.session.flush()
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


def update_product(product: Product, payload: dict) -> Product:
    """
    Patch a product.

    Setting "stock" here is the administrative edit path and bypasses the
    request workflow.
    """
    if "name" in payload:
        product.name = require_text(payload["name"], "name", max_length=100)
    if "sku" in payload:
        sku = optional_text(payload["sku"], "sku", max_length=50)
        _check_sku_unique(sku, product.id)
        product.sku = sku
    if "category" in payload:
        product.category = optional_text(payload["category"], "category", max_length=50)
    if "unit" in payload:
        product.unit = optional_text(payload["unit"], "unit", max_length=20) or "个"
    if "price" in payload:
        price = optional_decimal(payload["price"], "price")
        if price is not None and price < 0:
            raise ValidationError("price must be >= 0")
        product.price = price or 0
    if "stock" in payload:
        product.stock = non_negative_int(payload["stock"], "stock")
    if "minStock" in payload:
        product.min_stock = non_negative_int(payload["minStock"], "minStock")
    if "description" in payload:
        product.description = optional_text(payload["description"], "description")
    if "image" in payload:
        product.image = optional_text(payload["image"], "image", max_length=255)
    if "status" in payload:
        product.status = _status(payload["status"])
    db.session.flush()
    return product


def delete_product(product: Product) -> None:
    referenced = db.session.query(StockRequestItem.id).filter_by(product_id=product.id).first()
    if referenced:
        raise ValidationError("Product is referenced by stock requests and cannot be deleted")
    db.session.delete(product)
    logger.info("Deleted product %s", product.id)


def batch_set_stock(items) -> int:
    """Set absolute stock for several products at once. Returns rows updated."""
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    updated = 0
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object with id and stock")
        product_id = optional_int(raw.get("id"), "id")
        if product_id is None:
            raise ValidationError("id is required")
        product = get_product(product_id)
        product.stock = non_negative_int(raw.get("stock"), "stock")
        updated += 1
    db.session.flush()
    logger.info("Batch stock update for %d products", updated)
    return updated
