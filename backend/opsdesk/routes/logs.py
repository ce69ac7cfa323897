# Overview: Daily work log endpoints.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..responses import created, error, from_exception, paginated, success
from ..services import worklog_service
from ..services.concurrency import commit_session
from ..validation import OpsdeskError, optional_int, page_args


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.route("", methods=["GET"])
@require_auth
@require_permission("log_write", "log_view_all")
def list_logs():
    """Query: page, pageSize, userId, startDate, endDate. Own logs unless log_view_all."""
    try:
        page, page_size = page_args(request.args)
        rows, total = worklog_service.list_logs(
            viewer_id=g.current_user.id,
            can_view_all="log_view_all" in g.permissions,
            user_id=optional_int(request.args.get("userId"), "userId"),
            start_date=request.args.get("startDate") or None,
            end_date=request.args.get("endDate") or None,
            page=page,
            page_size=page_size,
        )
        return paginated([r.to_dict() for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@logs_bp.route("/today", methods=["GET"])
@require_auth
def today_log():
    log = worklog_service.get_today_log(g.current_user.id)
    return success(log.to_dict() if log else None)


@logs_bp.route("/users/list", methods=["GET"])
@require_auth
@require_permission("log_view_all")
def log_users():
    return success(worklog_service.active_users())


@logs_bp.route("/<int:log_id>", methods=["GET"])
@require_auth
def get_log(log_id: int):
    try:
        log = worklog_service.get_log(log_id, g.current_user.id, "log_view_all" in g.permissions)
        return success(log.to_dict())
    except OpsdeskError as e:
        return from_exception(e)


@logs_bp.route("", methods=["POST"])
@require_auth
@require_permission("log_write")
def write_log():
    """
    Create or replace the caller's log for a date.

    Request body: {"logDate": "YYYY-MM-DD", "content": str, "workHours"?: number (default 8)}

    Returns:
        201: created
        200: existing log for that date replaced
    """
    data = request.get_json(silent=True) or {}

    try:
        log, was_created = worklog_service.upsert_log(g.current_user.id, data)
        commit_session()
        if was_created:
            return created(log.to_dict(), "Work log created")
        return success(log.to_dict(), "Work log updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to write work log")
        return error("Internal server error", 500)


@logs_bp.route("/<int:log_id>", methods=["PUT"])
@require_auth
@require_permission("log_write")
def update_log(log_id: int):
    data = request.get_json(silent=True) or {}

    try:
        log = worklog_service.update_log(log_id, g.current_user.id, data)
        commit_session()
        return success(log.to_dict(), "Work log updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update work log")
        return error("Internal server error", 500)


@logs_bp.route("/<int:log_id>", methods=["DELETE"])
@require_auth
@require_permission("log_write")
def delete_log(log_id: int):
    try:
        worklog_service.delete_log(log_id, g.current_user.id)
        commit_session()
        return success(None, "Work log deleted")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete work log")
        return error("Internal server error", 500)
