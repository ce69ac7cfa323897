# Overview: Stock request endpoints: submission, approval, item edits and shipping.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..responses import created, error, from_exception, paginated, success
from ..services import approval_service, shipment_service, stock_request_service
from ..services.concurrency import commit_session
from ..validation import OpsdeskError, PermissionDeniedError, page_args


stock_requests_bp = Blueprint("stock_requests", __name__, url_prefix="/api/stock-requests")


@stock_requests_bp.route("", methods=["GET"])
@require_auth
def list_requests():
    """
    Query: page, pageSize, status, type, startDate, endDate, keyword, my=1

    Without stock_view_all only the caller's own submissions are listed.
    """
    try:
        page, page_size = page_args(request.args)
        rows, total = stock_request_service.list_requests(
            viewer_id=g.current_user.id,
            can_view_all="stock_view_all" in g.permissions,
            only_mine=request.args.get("my") == "1",
            status=request.args.get("status") or None,
            request_type=request.args.get("type") or None,
            start_date=request.args.get("startDate") or None,
            end_date=request.args.get("endDate") or None,
            keyword=request.args.get("keyword") or None,
            page=page,
            page_size=page_size,
        )
        return paginated([r.to_dict() for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@stock_requests_bp.route("/pending", methods=["GET"])
@require_auth
@require_permission("stock_approve")
def list_pending():
    """Pending requests with each line's current product stock."""
    try:
        page, page_size = page_args(request.args)
        rows, total = stock_request_service.list_pending(page=page, page_size=page_size)
        return paginated([r.to_dict(include_stock=True) for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@stock_requests_bp.route("/approved", methods=["GET"])
@require_auth
@require_permission("shipping_manage", "stock_view_all")
def list_approved():
    """Query: page, pageSize, shippingStatus (none|pending|shipped|delivered), keyword"""
    try:
        page, page_size = page_args(request.args)
        rows, total = stock_request_service.list_approved_for_shipping(
            shipping_status=request.args.get("shippingStatus") or None,
            keyword=request.args.get("keyword") or None,
            page=page,
            page_size=page_size,
        )
        return paginated([r.to_dict() for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@stock_requests_bp.route("/<int:request_id>", methods=["GET"])
@require_auth
def get_request(request_id: int):
    try:
        stock_request = stock_request_service.get_request(request_id)
        if not stock_request_service.can_view(stock_request, g.current_user.id, g.permissions):
            raise PermissionDeniedError("You cannot view this request")
        return success(stock_request.to_dict(include_stock=True))
    except OpsdeskError as e:
        return from_exception(e)


@stock_requests_bp.route("", methods=["POST"])
@require_auth
def submit_request():
    """
    Submit a request.

    Request body:
    {
        "type": "inbound" | "outbound" | "self_purchase" (legacy "in" | "out"),
        "items": [{"productId": int, "quantity": int >= 1}]   (inbound/outbound)
        "quantity": int >= 1                                  (self_purchase)
        "merchant"?, "address"?, "receiverName"?, "receiverPhone"?,
        "shippingFee"?: "receiver" | "sender", "remark"?, "salesmanId"?
    }

    Returns:
        201: {id, requestNo, itemsSummary, quantity}
        400: invalid input
        403: missing stock_add / stock_reduce for the type
        404: unknown product or salesman
    """
    data = request.get_json(silent=True) or {}

    try:
        variant = stock_request_service.parse_variant(data)
        meta = stock_request_service.parse_meta(data)
        stock_request = stock_request_service.submit(
            g.current_user,
            variant,
            meta,
            user_permissions=g.permissions,
            resource=request.path,
        )
        commit_session()
        return created(
            {
                "id": stock_request.id,
                "requestNo": stock_request.request_no,
                "itemsSummary": stock_request.items_summary,
                "quantity": stock_request.quantity,
            },
            "Request submitted, awaiting approval",
        )

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to submit stock request")
        return error("Internal server error", 500)


@stock_requests_bp.route("/<int:request_id>/approve", methods=["POST"])
@require_auth
@require_permission("stock_approve")
def approve_request(request_id: int):
    """
    Request body: {"approved": bool, "rejectReason"?: str}

    Returns:
        200: approved / rejected
        400: already processed, insufficient stock (data names the product), missing reason
        404: request not found
    """
    data = request.get_json(silent=True) or {}

    try:
        stock_request = approval_service.decide(
            request_id,
            g.current_user,
            data.get("approved"),
            data.get("rejectReason"),
        )
        commit_session()
        message = "Request approved" if stock_request.status == "approved" else "Request rejected"
        return success(stock_request.to_dict(include_stock=True), message)

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to process approval")
        return error("Internal server error", 500)


@stock_requests_bp.route("/<int:request_id>/items", methods=["PUT"])
@require_auth
@require_permission("stock_approve")
def edit_items(request_id: int):
    """Request body: {"items": [{"id": <item id>, "quantity": int >= 1}]}"""
    data = request.get_json(silent=True) or {}

    try:
        stock_request = stock_request_service.edit_items(request_id, data.get("items"))
        commit_session()
        return success(stock_request.to_dict(include_stock=True), "Items updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to edit request items")
        return error("Internal server error", 500)


@stock_requests_bp.route("/<int:request_id>/shipping", methods=["POST"])
@require_auth
@require_permission("shipping_manage")
def upsert_shipping(request_id: int):
    """
    Request body:
    {
        "shippingStatus"?: "pending" | "shipped" | "delivered",
        "trackingNo"?, "courierCompany"?, "shippingAddress"?,
        "receiverName"?, "receiverPhone"?, "remark"?
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        shipment = shipment_service.upsert_shipment(request_id, data, g.current_user.id)
        commit_session()
        return success(shipment.to_dict(), "Shipping info saved")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to save shipping info")
        return error("Internal server error", 500)
