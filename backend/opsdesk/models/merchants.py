from __future__ import annotations

from ..extensions import db
from opsdesk.time_utils import to_utc_z, utcnow


MERCHANT_STATUS_PENDING = 0
MERCHANT_STATUS_APPROVED = 1
MERCHANT_STATUS_REJECTED = 2
MERCHANT_STATUSES = (MERCHANT_STATUS_PENDING, MERCHANT_STATUS_APPROVED, MERCHANT_STATUS_REJECTED)


class MerchantRegistration(db.Model):
    """Merchant intake form, optionally with ID-card images in object storage."""
    __tablename__ = "merchant_registrations"
    __table_args__ = (
        db.CheckConstraint("status IN (0, 1, 2)", name="ck_merchant_registrations_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_name = db.Column(db.String(50), nullable=True)

    phone = db.Column(db.String(20), nullable=False)
    business_scope = db.Column(db.String(255), nullable=False)
    business_name_1 = db.Column(db.String(100), nullable=False)
    business_name_2 = db.Column(db.String(100), nullable=True)
    business_name_3 = db.Column(db.String(100), nullable=True)
    contact_name = db.Column(db.String(50), nullable=False)
    contact_phone = db.Column(db.String(20), nullable=False)

    id_card_front_key = db.Column(db.String(255), nullable=True)
    id_card_back_key = db.Column(db.String(255), nullable=True)

    status = db.Column(db.Integer, nullable=False, default=MERCHANT_STATUS_PENDING, index=True)
    remark = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self, front_url: str | None = None, back_url: str | None = None) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "phone": self.phone,
            "businessScope": self.business_scope,
            "businessName1": self.business_name_1,
            "businessName2": self.business_name_2,
            "businessName3": self.business_name_3,
            "contactName": self.contact_name,
            "contactPhone": self.contact_phone,
            "idCardFrontKey": self.id_card_front_key,
            "idCardBackKey": self.id_card_back_key,
            "idCardFrontUrl": front_url,
            "idCardBackUrl": back_url,
            "status": self.status,
            "remark": self.remark,
            "createdAt": to_utc_z(self.created_at),
        }
