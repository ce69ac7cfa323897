# Overview: Password hashing and credential checks.

"""
SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters
- Session tokens managed separately (see session_service.py)
"""

import logging

import bcrypt

from ..extensions import db
from ..models import User
from ..validation import AuthenticationError, PermissionDeniedError, ValidationError
from opsdesk.time_utils import utcnow


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def validate_password(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """Validate length, then hash with bcrypt."""
    validate_password(password)
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def authenticate(username: str, password: str) -> User:
    """
    Return the user matching the credentials.

    Raises AuthenticationError on bad credentials and PermissionDeniedError
    for a disabled account. Updates last_login_at on success (caller commits).
    """
    if not username or not password:
        raise ValidationError("Username and password are required")
    user = db.session.query(User).filter_by(username=username).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid username or password")
    if not user.is_active:
        raise PermissionDeniedError("Account is disabled")
    user.last_login_at = utcnow()
    return user


def change_password(user: User, old_password: str, new_password: str) -> None:
    if not old_password or not new_password:
        raise ValidationError("oldPassword and newPassword are required")
    if not verify_password(old_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    logger.info("User %s changed password", user.id)
