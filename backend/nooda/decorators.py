# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .validation import Actor


USER_ID_HEADER = "X-User-Id"
USERNAME_HEADER = "X-Username"


def require_actor(f):
    """
    Require an authenticated actor identity and attach it to the request.

    Authentication itself happens upstream (login, sessions); the auth layer
    forwards the resolved identity in the X-User-Id / X-Username headers.

    Sets g.actor to a validation.Actor. Returns 401 when either header is
    missing or blank.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        username = (request.headers.get(USERNAME_HEADER) or "").strip()

        if not user_id or not username:
            return jsonify({"error": "Authentication required"}), 401

        g.actor = Actor(user_id=user_id, username=username)
        return f(*args, **kwargs)

    return decorated_function
