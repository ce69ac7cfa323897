# Overview: User directory management (accounts, hierarchy, permission sets).

from __future__ import annotations

import logging

from sqlalchemy import case

from ..extensions import db
from ..models import User, USER_TYPES
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    optional_int,
    optional_text,
    require_text,
)
from . import permission_service, session_service
from .auth_service import hash_password


logger = logging.getLogger(__name__)

# The account created by `flask system init`; never deletable.
BOOTSTRAP_ADMIN_ID = 1

_TYPE_ORDER = case({t: i for i, t in enumerate(USER_TYPES)}, value=User.user_type, else_=len(USER_TYPES))


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def serialize_user(user: User) -> dict:
    data = user.to_dict()
    data["permissions"] = sorted(permission_service.get_user_permissions(user.id))
    return data


def list_users(*, keyword: str | None = None, status: int | None = None, page: int = 1, page_size: int = 20):
    """Users ordered admin > leader > salesman > deliver > editor, then by id."""
    query = db.session.query(User)
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(db.or_(User.username.like(like), User.real_name.like(like)))
    if status is not None:
        query = query.filter(User.is_active.is_(bool(status)))
    total = query.count()
    users = query.order_by(_TYPE_ORDER, User.id).offset((page - 1) * page_size).limit(page_size).all()
    return [serialize_user(u) for u in users], total


def _validate_user_type(user_type):
    if user_type not in USER_TYPES:
        raise ValidationError(f"userType must be one of: {', '.join(USER_TYPES)}")
    return user_type


def _resolve_leader(leader_id, user_id=None):
    if leader_id is None:
        return None
    if user_id is not None and leader_id == user_id:
        raise ValidationError("A user cannot be their own leader")
    get_user(leader_id)
    return leader_id


def create_user(
    *,
    username,
    password,
    real_name=None,
    email=None,
    phone=None,
    user_type="salesman",
    leader_id=None,
    permissions=(),
) -> User:
    """Create an account with an initial permission set. Caller commits."""
    username = require_text(username, "username", max_length=50)
    if db.session.query(User).filter_by(username=username).first():
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        real_name=optional_text(real_name, "realName", max_length=50),
        email=optional_text(email, "email", max_length=100),
        phone=optional_text(phone, "phone", max_length=20),
        user_type=_validate_user_type(user_type or "salesman"),
        leader_id=_resolve_leader(optional_int(leader_id, "leaderId")),
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()

    permission_service.set_user_permissions(user, permissions or ())
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


def update_user(user: User, payload: dict) -> User:
    """
    Patch profile fields; "permissions" (when present) replaces the whole set.

    Deactivating a user revokes their sessions. Caller commits.
    """
    if "realName" in payload:
        user.real_name = optional_text(payload["realName"], "realName", max_length=50)
    if "email" in payload:
        user.email = optional_text(payload["email"], "email", max_length=100)
    if "phone" in payload:
        user.phone = optional_text(payload["phone"], "phone", max_length=20)
    if "userType" in payload:
        user.user_type = _validate_user_type(payload["userType"])
    if "leaderId" in payload:
        user.leader_id = _resolve_leader(optional_int(payload["leaderId"], "leaderId"), user.id)
    if "status" in payload:
        status = optional_int(payload["status"], "status")
        if status not in (0, 1):
            raise ValidationError("status must be 0 or 1")
        user.is_active = bool(status)
        if not user.is_active:
            session_service.revoke_all_user_sessions(user.id, reason="User deactivated")

    if "permissions" in payload:
        codes = payload["permissions"] or []
        if not isinstance(codes, list):
            raise ValidationError("permissions must be a list of codes")
        permission_service.set_user_permissions(user, codes)

    logger.info("Updated user %s", user.id)
    return user


def reset_password(user: User, new_password) -> None:
    user.password_hash = hash_password(new_password)
    session_service.revoke_all_user_sessions(user.id, reason="Password reset")
    logger.info("Password reset for user %s", user.id)


def delete_user(user: User, acting_user_id: int) -> None:
    if user.id == BOOTSTRAP_ADMIN_ID:
        raise ValidationError("The administrator account cannot be deleted")
    if user.id == acting_user_id:
        raise ValidationError("You cannot delete your own account")
    for member in list(user.members):
        member.leader_id = None
    db.session.delete(user)
    logger.info("Deleted user %s by %s", user.id, acting_user_id)


def my_salesmen(leader_id: int) -> list[dict]:
    users = (
        db.session.query(User)
        .filter(User.leader_id == leader_id, User.is_active.is_(True))
        .order_by(User.id)
        .all()
    )
    return [{"id": u.id, "username": u.username, "realName": u.real_name, "phone": u.phone} for u in users]


def all_salesmen(current_user_id: int) -> list[dict]:
    """Active salesmen, the caller's own reports first."""
    users = (
        db.session.query(User)
        .filter(User.user_type == "salesman", User.is_active.is_(True))
        .order_by(case((User.leader_id == current_user_id, 0), else_=1), User.id)
        .all()
    )
    return [
        {
            "id": u.id,
            "username": u.username,
            "realName": u.real_name,
            "phone": u.phone,
            "isMine": u.leader_id == current_user_id,
        }
        for u in users
    ]
