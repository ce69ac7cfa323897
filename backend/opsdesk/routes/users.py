# Overview: User directory administration endpoints.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..models import Permission
from ..permissions import PermissionCategory
from ..responses import created, error, from_exception, paginated, success
from ..services import user_service
from ..services.concurrency import commit_session
from ..validation import OpsdeskError, optional_int, page_args


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("", methods=["GET"])
@require_auth
@require_permission("user_view", "user_manage")
def list_users():
    """Query: page, pageSize, keyword, status (0|1)"""
    try:
        page, page_size = page_args(request.args)
        users, total = user_service.list_users(
            keyword=request.args.get("keyword") or None,
            status=optional_int(request.args.get("status"), "status"),
            page=page,
            page_size=page_size,
        )
        return paginated(users, total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@users_bp.route("/permissions", methods=["GET"])
@require_auth
def list_permissions():
    order = {c: i for i, c in enumerate(PermissionCategory.ORDER)}
    rows = db.session.query(Permission).all()
    rows.sort(key=lambda p: (order.get(p.category, len(order)), p.id))
    return success([p.to_dict() for p in rows])


@users_bp.route("", methods=["POST"])
@require_auth
@require_permission("user_manage")
def create_user():
    """
    Request body:
    {
        "username": str, "password": str (>= 6 chars),
        "realName"?, "email"?, "phone"?, "userType"?, "leaderId"?,
        "permissions"?: [code, ...]
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        user = user_service.create_user(
            username=data.get("username"),
            password=data.get("password"),
            real_name=data.get("realName"),
            email=data.get("email"),
            phone=data.get("phone"),
            user_type=data.get("userType") or "salesman",
            leader_id=data.get("leaderId"),
            permissions=data.get("permissions") or [],
        )
        commit_session()
        return created({"id": user.id}, "User created")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create user")
        return error("Internal server error", 500)


@users_bp.route("/<int:user_id>", methods=["PUT"])
@require_auth
@require_permission("user_manage")
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}

    try:
        user = user_service.update_user(user_service.get_user(user_id), data)
        commit_session()
        return success(user_service.serialize_user(user), "User updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update user")
        return error("Internal server error", 500)


@users_bp.route("/<int:user_id>/password", methods=["PUT"])
@require_auth
@require_permission("user_manage")
def reset_password(user_id: int):
    data = request.get_json(silent=True) or {}

    try:
        user_service.reset_password(user_service.get_user(user_id), data.get("password"))
        commit_session()
        return success(None, "Password reset")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to reset password")
        return error("Internal server error", 500)


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@require_auth
@require_permission("user_manage")
def delete_user(user_id: int):
    try:
        user_service.delete_user(user_service.get_user(user_id), g.current_user.id)
        commit_session()
        return success(None, "User deleted")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete user")
        return error("Internal server error", 500)


@users_bp.route("/my-salesmen", methods=["GET"])
@require_auth
def my_salesmen():
    return success(user_service.my_salesmen(g.current_user.id))


@users_bp.route("/all-salesmen", methods=["GET"])
@require_auth
def all_salesmen():
    return success(user_service.all_salesmen(g.current_user.id))
