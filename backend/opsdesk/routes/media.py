# Overview: Media upload quota endpoints.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..responses import created, error, from_exception, paginated, success
from ..services import media_service
from ..services.concurrency import commit_session
from ..validation import OpsdeskError, optional_int, page_args


media_bp = Blueprint("media", __name__, url_prefix="/api/media")


@media_bp.route("/upload-url", methods=["POST"])
@require_auth
@require_permission("media_upload")
def upload_url():
    """Request body: {"filename": str, "contentType": str} -> {key, uploadUrl, viewUrl}"""
    data = request.get_json(silent=True) or {}
    try:
        return success(media_service.presign_upload(g.current_user, data.get("filename"), data.get("contentType")))
    except OpsdeskError as e:
        return from_exception(e)


@media_bp.route("/upload", methods=["POST"])
@require_auth
@require_permission("media_upload")
def upload():
    """Multipart upload; the file part is named "file"."""
    try:
        record = media_service.upload_file(g.current_user, request.files.get("file"))
        commit_session()
        return created(media_service.serialize(record), "Upload recorded")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to upload media")
        return error("Internal server error", 500)


@media_bp.route("/confirm", methods=["POST"])
@require_auth
@require_permission("media_upload")
def confirm():
    """Request body: {"key": str, "fileName": str, "fileType": "image"|"video", "fileSize": int}"""
    data = request.get_json(silent=True) or {}

    try:
        record = media_service.confirm_upload(g.current_user, data)
        commit_session()
        return created(media_service.serialize(record), "Upload recorded")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to confirm media upload")
        return error("Internal server error", 500)


@media_bp.route("/my", methods=["GET"])
@require_auth
def my_uploads():
    try:
        page, page_size = page_args(request.args)
        rows, total, stats = media_service.my_uploads(
            g.current_user.id,
            day=request.args.get("date") or None,
            page=page,
            page_size=page_size,
        )
        return paginated([media_service.serialize(r) for r in rows], total, page, page_size, stats=stats)
    except OpsdeskError as e:
        return from_exception(e)


@media_bp.route("/my-stats", methods=["GET"])
@require_auth
def my_stats():
    try:
        return success(
            media_service.my_stats(
                g.current_user.id,
                start_date=request.args.get("startDate") or None,
                end_date=request.args.get("endDate") or None,
            )
        )
    except OpsdeskError as e:
        return from_exception(e)


@media_bp.route("/team", methods=["GET"])
@require_auth
def team_uploads():
    """Uploads of the caller's team for a date (everyone with media_view_team)."""
    try:
        page, page_size = page_args(request.args)
        rows, total = media_service.team_uploads(
            g.current_user.id,
            "media_view_team" in g.permissions,
            day=request.args.get("date") or None,
            salesman_id=optional_int(request.args.get("salesmanId"), "salesmanId"),
            page=page,
            page_size=page_size,
        )
        return paginated([media_service.serialize(r) for r in rows], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@media_bp.route("/team-stats", methods=["GET"])
@require_auth
def team_stats():
    try:
        return success(
            media_service.team_stats(
                g.current_user.id,
                "media_view_team" in g.permissions,
                day=request.args.get("date") or None,
            )
        )
    except OpsdeskError as e:
        return from_exception(e)


@media_bp.route("/<int:upload_id>", methods=["DELETE"])
@require_auth
def delete_upload(upload_id: int):
    try:
        removed = media_service.delete_upload(upload_id, g.current_user.id)
        return success({"objectRemoved": removed}, "Upload deleted")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete media upload")
        return error("Internal server error", 500)
