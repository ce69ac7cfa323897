# Overview: Authentication and permission decorators for API routes.

from functools import wraps

from flask import g, request

from .responses import error
from .services import permission_service, session_service
from .validation import PermissionDeniedError


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token.

    Sets:
    - g.current_user: the authenticated User
    - g.permissions: set of permission codes the user holds
    - g.auth_token: the plaintext bearer token (for logout)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return error("Authentication required", 401)

        user = session_service.validate_session(token)
        if not user:
            return error("Invalid or expired token", 401)

        g.current_user = user
        g.permissions = permission_service.get_user_permissions(user.id)
        g.auth_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_permission(*permission_codes):
    """
    Require any one of the given permission codes (OR).

    Must sit below @require_auth. Denials are logged to security_events.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return error("Authentication required", 401)
            try:
                permission_service.require(
                    g.current_user.id,
                    permission_codes,
                    user_permissions=g.permissions,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return error(e.message, 403, e.data)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
