# Overview: Merchant registration intake and review.

from __future__ import annotations

import logging
import re

from flask import current_app

from ..extensions import db
from ..models import MerchantRegistration, User
from ..models.merchants import MERCHANT_STATUSES
from ..validation import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    coerce_int,
    optional_text,
    require_text,
)
from . import storage
from .concurrency import commit_session


logger = logging.getLogger(__name__)

# Mainland China mobile numbers
PHONE_RE = re.compile(r"^1[3-9]\d{9}$")
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def validate_phone(value, field: str) -> str:
    phone = require_text(value, field, max_length=20)
    if not PHONE_RE.match(phone):
        raise ValidationError(f"{field} must be a valid mobile number")
    return phone


def serialize(record: MerchantRegistration) -> dict:
    return record.to_dict(
        front_url=storage.read_url(record.id_card_front_key),
        back_url=storage.read_url(record.id_card_back_key),
    )


def _store_image(user_id: int, file_storage, side: str) -> str | None:
    if file_storage is None or not file_storage.filename:
        return None
    if file_storage.mimetype not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("ID card images must be JPG, PNG, GIF or WEBP")
    data = file_storage.read()
    if len(data) > current_app.config["MERCHANT_IMAGE_MAX_BYTES"]:
        raise ValidationError("ID card image is too large")
    key = storage.merchant_key(user_id, f"{side}_{file_storage.filename}")
    storage.get_blob_store().put(key, data, file_storage.mimetype)
    return key


def register(user: User, form, files) -> MerchantRegistration:
    """
    Create a registration from a multipart form.

    All text fields are validated before any image is stored.
    """
    fields = {
        "phone": validate_phone(form.get("phone"), "phone"),
        "business_scope": require_text(form.get("businessScope"), "businessScope", max_length=255),
        "business_name_1": require_text(form.get("businessName1"), "businessName1", max_length=100),
        "business_name_2": optional_text(form.get("businessName2"), "businessName2", max_length=100),
        "business_name_3": optional_text(form.get("businessName3"), "businessName3", max_length=100),
        "contact_name": require_text(form.get("contactName"), "contactName", max_length=50),
        "contact_phone": validate_phone(form.get("contactPhone"), "contactPhone"),
    }

    record = MerchantRegistration(
        user_id=user.id,
        user_name=user.display_name,
        id_card_front_key=_store_image(user.id, files.get("idCardFront"), "front"),
        id_card_back_key=_store_image(user.id, files.get("idCardBack"), "back"),
        **fields,
    )
    db.session.add(record)
    db.session.flush()
    logger.info("User %s registered merchant %s (%s)", user.id, record.id, record.business_name_1)
    return record


def list_mine(user_id: int, *, page: int = 1, page_size: int = 20):
    query = db.session.query(MerchantRegistration).filter_by(user_id=user_id)
    total = query.count()
    rows = query.order_by(MerchantRegistration.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def list_all(*, keyword=None, status=None, user_id=None, page: int = 1, page_size: int = 20):
    query = db.session.query(MerchantRegistration)
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(
            db.or_(
                MerchantRegistration.phone.like(like),
                MerchantRegistration.business_name_1.like(like),
                MerchantRegistration.contact_name.like(like),
                MerchantRegistration.user_name.like(like),
            )
        )
    if status is not None:
        query = query.filter(MerchantRegistration.status == status)
    if user_id is not None:
        query = query.filter(MerchantRegistration.user_id == user_id)
    total = query.count()
    rows = query.order_by(MerchantRegistration.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def get_registration(record_id: int) -> MerchantRegistration:
    record = db.session.get(MerchantRegistration, record_id)
    if not record:
        raise NotFoundError("Merchant registration not found")
    return record


def set_status(record_id: int, status, remark=None) -> MerchantRegistration:
    status = coerce_int(status, "status")
    if status not in MERCHANT_STATUSES:
        raise ValidationError("status must be 0 (pending), 1 (approved) or 2 (rejected)")
    record = get_registration(record_id)
    record.status = status
    record.remark = optional_text(remark, "remark", max_length=255)
    db.session.flush()
    logger.info("Merchant registration %s set to status %s", record.id, status)
    return record


def delete_registration(record_id: int, user_id: int, can_view_all: bool) -> dict:
    """
    Delete a registration, commit, then remove its stored images.

    Reports which images were removed.
    """
    record = get_registration(record_id)
    if record.user_id != user_id and not can_view_all:
        raise PermissionDeniedError("You cannot delete this registration")
    front_key, back_key = record.id_card_front_key, record.id_card_back_key
    db.session.delete(record)
    commit_session()
    removed = {
        "idCardFront": storage.delete_quietly(front_key),
        "idCardBack": storage.delete_quietly(back_key),
    }
    logger.info("Deleted merchant registration %s by user %s", record_id, user_id)
    return removed


def submitters() -> list[dict]:
    rows = (
        db.session.query(MerchantRegistration.user_id, MerchantRegistration.user_name)
        .distinct()
        .order_by(MerchantRegistration.user_name)
        .all()
    )
    return [{"userId": uid, "userName": name} for uid, name in rows]
