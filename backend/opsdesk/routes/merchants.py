# Overview: Merchant registration intake and review endpoints.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..responses import created, error, from_exception, paginated, success
from ..services import merchant_service
from ..services.concurrency import commit_session
from ..validation import OpsdeskError, optional_int, page_args


merchants_bp = Blueprint("merchants", __name__, url_prefix="/api/merchants")


@merchants_bp.route("/register", methods=["POST"])
@require_auth
@require_permission("merchant_upload")
def register():
    """
    Multipart form:
        phone, businessScope, businessName1, businessName2?, businessName3?,
        contactName, contactPhone, idCardFront? (image), idCardBack? (image)
    """
    try:
        record = merchant_service.register(g.current_user, request.form, request.files)
        commit_session()
        return created(merchant_service.serialize(record), "Registration submitted")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register merchant")
        return error("Internal server error", 500)


@merchants_bp.route("/my", methods=["GET"])
@require_auth
def my_registrations():
    try:
        page, page_size = page_args(request.args)
        rows, total = merchant_service.list_mine(g.current_user.id, page=page, page_size=page_size)
        return paginated([merchant_service.serialize(r) for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@merchants_bp.route("/all", methods=["GET"])
@require_auth
@require_permission("merchant_view_all")
def all_registrations():
    """Query: page, pageSize, keyword, status, userId"""
    try:
        page, page_size = page_args(request.args)
        rows, total = merchant_service.list_all(
            keyword=request.args.get("keyword") or None,
            status=optional_int(request.args.get("status"), "status"),
            user_id=optional_int(request.args.get("userId"), "userId"),
            page=page,
            page_size=page_size,
        )
        return paginated([merchant_service.serialize(r) for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@merchants_bp.route("/<int:record_id>/status", methods=["PUT"])
@require_auth
@require_permission("merchant_view_all")
def set_status(record_id: int):
    """Request body: {"status": 0|1|2, "remark"?: str}"""
    data = request.get_json(silent=True) or {}

    try:
        record = merchant_service.set_status(record_id, data.get("status"), data.get("remark"))
        commit_session()
        return success(merchant_service.serialize(record), "Status updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update merchant status")
        return error("Internal server error", 500)


@merchants_bp.route("/<int:record_id>", methods=["DELETE"])
@require_auth
def delete_registration(record_id: int):
    try:
        removed = merchant_service.delete_registration(
            record_id, g.current_user.id, "merchant_view_all" in g.permissions
        )
        return success({"imagesRemoved": removed}, "Registration deleted")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete merchant registration")
        return error("Internal server error", 500)


@merchants_bp.route("/submitters", methods=["GET"])
@require_auth
@require_permission("merchant_view_all")
def submitters():
    return success(merchant_service.submitters())
