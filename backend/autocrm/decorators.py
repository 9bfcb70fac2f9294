# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import PermissionDeniedError, require_permission as check_permission
from .store import get_store


USER_HEADER = "X-User-Id"


def _is_identified() -> bool:
    return getattr(g, "current_user", None) is not None


def require_user(f):
    """
    Resolve the acting user from the X-User-Id header.

    Sets g.current_user to the User record. There are no passwords or
    sessions: the header names a user from the store and the role table
    decides what that user may do.

    Returns 401 if the header is missing or names no known user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = request.headers.get(USER_HEADER)
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        user = get_store().get_user_by_id(user_id.strip())
        if user is None:
            return jsonify({"error": "Unknown user"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the acting user's role to grant permission_code (403 otherwise)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_user was called first
            if not _is_identified():
                return jsonify({"error": "Authentication required"}), 401

            try:
                check_permission(g.current_user, permission_code)
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
