# Overview: Login, logout, current-user and password endpoints.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..extensions import db
from ..responses import error, from_exception, success
from ..services import auth_service, permission_service, session_service
from ..services.concurrency import commit_session
from ..validation import AuthenticationError, OpsdeskError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user, permissions) -> dict:
    data = user.to_dict()
    data["permissions"] = sorted(permissions)
    return data


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Request body: {"username": str, "password": str}

    Returns:
        200: {token, user}
        400: missing fields
        401: bad credentials
        403: account disabled
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")

    try:
        user = auth_service.authenticate(username, data.get("password"))
        _, token = session_service.create_session(
            user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        permissions = permission_service.get_user_permissions(user.id)
        return success({"token": token, "user": _user_payload(user, permissions)}, "Login successful")

    except AuthenticationError as e:
        db.session.rollback()
        permission_service.log_security_event(
            user_id=None,
            event_type="LOGIN_FAILED",
            success=False,
            resource=request.path,
            action="LOGIN",
            reason=f"Bad credentials for {username!r}",
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return from_exception(e)
    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to log in")
        return error("Internal server error", 500)


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    return success(_user_payload(g.current_user, g.permissions))


@auth_bp.route("/password", methods=["PUT"])
@require_auth
def change_password():
    """Request body: {"oldPassword": str, "newPassword": str (>= 6 chars)}"""
    data = request.get_json(silent=True) or {}

    try:
        auth_service.change_password(g.current_user, data.get("oldPassword"), data.get("newPassword"))
        session_service.revoke_all_user_sessions(
            g.current_user.id, reason="Password changed", keep_token=g.auth_token
        )
        commit_session()
        return success(None, "Password updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to change password")
        return error("Internal server error", 500)


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    session_service.revoke_session(g.auth_token)
    return success(None, "Logged out")
