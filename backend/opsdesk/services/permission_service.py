# Overview: Permission gate, permission lookups and security event logging.

"""
Permission checking for the console.

The gate itself (check) is a pure function over a user's permission codes.
Everything else resolves those codes from the database, records denials in
security_events, and seeds/assigns permission rows.

DESIGN PRINCIPLES:
- Fail closed: deny unless a code is explicitly held
- Several required codes mean "any of" (OR), never "all of"
- Log denials only
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from ..extensions import db
from ..models import Permission, SecurityEvent, User, UserPermission
from ..permissions import PERMISSION_DEFINITIONS, validate_permission_code
from ..validation import NotFoundError, PermissionDeniedError, ValidationError
from opsdesk.time_utils import utcnow


logger = logging.getLogger(__name__)


def check(user_permissions: Iterable[str], required: str | Iterable[str]) -> bool:
    """
    Permission gate.

    A single code is a membership test; a collection passes when the user
    holds any one of the codes. An empty collection never passes.
    """
    held = set(user_permissions or ())
    if isinstance(required, str):
        return required in held
    return any(code in held for code in required)


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Append a security event and commit it.

    event_type examples: PERMISSION_DENIED, LOGIN_FAILED, LOGOUT
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    db.session.commit()
    return event


def get_user_permissions(user_id: int) -> set[str]:
    """Permission codes held by a user."""
    rows = (
        db.session.query(Permission.code)
        .join(UserPermission, UserPermission.permission_id == Permission.id)
        .filter(UserPermission.user_id == user_id)
        .all()
    )
    return {code for (code,) in rows}


def require(
    user_id: int,
    required: str | Iterable[str],
    *,
    user_permissions: set[str] | None = None,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    message: str | None = None,
) -> None:
    """
    Raise PermissionDeniedError (after logging it) unless the gate passes.

    Call this before any write in the surrounding operation: the denial
    event is committed.
    """
    if user_permissions is None:
        user_permissions = get_user_permissions(user_id)
    if check(user_permissions, required):
        return

    codes = [required] if isinstance(required, str) else list(required)
    log_security_event(
        user_id=user_id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=",".join(codes),
        reason=f"Missing any of: {', '.join(codes)}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    logger.info("Permission denied for user %s on %s (needs %s)", user_id, resource, codes)
    raise PermissionDeniedError(
        message or "Permission denied",
        data={"requiredPermissions": codes},
    )


def initialize_permissions() -> int:
    """
    Create Permission rows for every catalogue code.

    Idempotent: existing rows are left alone.
    """
    created_count = 0
    for code, name, description, category in PERMISSION_DEFINITIONS:
        existing = db.session.query(Permission).filter_by(code=code).first()
        if not existing:
            db.session.add(Permission(code=code, name=name, description=description, category=category))
            created_count += 1
    db.session.commit()
    return created_count


def _permission_rows(codes: Iterable[str]) -> list[Permission]:
    codes = list(dict.fromkeys(codes))
    unknown = [c for c in codes if not validate_permission_code(c)]
    if unknown:
        raise ValidationError(f"Unknown permission codes: {', '.join(unknown)}")
    rows = db.session.query(Permission).filter(Permission.code.in_(codes)).all() if codes else []
    missing = set(codes) - {p.code for p in rows}
    if missing:
        raise NotFoundError(f"Permission rows not initialized: {', '.join(sorted(missing))}")
    return rows


def set_user_permissions(user: User, codes: Iterable[str]) -> None:
    """Replace the user's permission set. Caller commits."""
    rows = _permission_rows(codes)
    db.session.query(UserPermission).filter_by(user_id=user.id).delete()
    for permission in rows:
        db.session.add(UserPermission(user_id=user.id, permission_id=permission.id))
    db.session.flush()


def grant_permission(user: User, code: str) -> bool:
    """Grant one code. Returns False if the user already held it."""
    (permission,) = _permission_rows([code])
    existing = db.session.query(UserPermission).filter_by(user_id=user.id, permission_id=permission.id).first()
    if existing:
        return False
    db.session.add(UserPermission(user_id=user.id, permission_id=permission.id))
    db.session.commit()
    return True


def revoke_permission(user: User, code: str) -> bool:
    """Revoke one code. Returns False if the user did not hold it."""
    (permission,) = _permission_rows([code])
    link = db.session.query(UserPermission).filter_by(user_id=user.id, permission_id=permission.id).first()
    if not link:
        return False
    db.session.delete(link)
    db.session.commit()
    return True


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days. Returns rows deleted."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(SecurityEvent.occurred_at < cutoff).delete()
    db.session.commit()
    return deleted
