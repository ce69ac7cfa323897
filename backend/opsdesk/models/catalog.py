from __future__ import annotations

from ..extensions import db
from opsdesk.time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data with its on-hand stock.

    stock is only moved by request approval (+/- line quantities) or by a
    direct administrative edit. It never goes below zero.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    sku = db.Column(db.String(50), nullable=True, unique=True)
    category = db.Column(db.String(50), nullable=True)
    unit = db.Column(db.String(20), nullable=False, default="个")
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    # Advisory threshold for the low-stock views
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(255), nullable=True)

    # 1 active, 0 inactive
    status = db.Column(db.Integer, nullable=False, default=1)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    creator = db.relationship("User", foreign_keys=[created_by])

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "unit": self.unit,
            "price": float(self.price) if self.price is not None else 0.0,
            "stock": self.stock,
            "minStock": self.min_stock,
            "description": self.description,
            "image": self.image,
            "status": self.status,
            "createdBy": self.created_by,
            "creatorName": self.creator.display_name if self.creator else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
