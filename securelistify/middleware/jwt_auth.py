"""
JWT Auth Middleware — resolves ``Authorization: Bearer <token>`` to a User.

Sets on every /api/v1/ request:
    g.current_user   User instance, or None
    g.auth_error     reason the token was rejected, or None

Decorators:
    @login_required  → 401 unless g.current_user is set
    @admin_required  → 401 without a user, 403 unless role == "admin"
"""

import functools
import logging

import jwt as pyjwt
from flask import g, request

from securelistify.models import db
from securelistify.models.user import User
from securelistify.services.jwt_service import decode_access_token
from securelistify.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that never need a caller identity
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/",
    "/api/v1/health",
)


def _resolve_user(token: str):
    try:
        payload = decode_access_token(token)
    except pyjwt.ExpiredSignatureError:
        g.auth_error = "Token expired"
        return None
    except pyjwt.InvalidTokenError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        g.auth_error = "Invalid token"
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        g.auth_error = "Invalid token subject"
        return None

    user = db.session.get(User, user_id)
    if user is None:
        g.auth_error = "User no longer exists"
    return user


def init_jwt_middleware(app):
    """Register the bearer-token parser as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user = None
        g.auth_error = None

        path = request.path
        if not path.startswith("/api/v1/") or path.startswith(JWT_SKIP_PREFIXES):
            return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return
        g.current_user = _resolve_user(auth_header[7:].strip())


def login_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "current_user", None) is None:
            message = getattr(g, "auth_error", None) or "Not authorized to access this route"
            return api_error(E.UNAUTHENTICATED, message)
        return f(*args, **kwargs)
    return decorated


def admin_required(f):
    @functools.wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not g.current_user.is_admin:
            logger.warning("Admin endpoint denied user_id=%s path=%s", g.current_user.id, request.path)
            return api_error(E.FORBIDDEN, f"User role {g.current_user.role} is not authorized to access this route")
        return f(*args, **kwargs)
    return decorated
