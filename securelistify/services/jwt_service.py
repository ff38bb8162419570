"""
JWT Service — access token generation and verification.

Access token lifetime: JWT_ACCESS_EXPIRES seconds (default 24 h)
Algorithm:             HS256

Token payload:
{
    "sub": "<user_id>",
    "role": "user" | "admin",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

DEFAULT_ACCESS_EXPIRES = 86400
ALGORITHM = "HS256"
TOKEN_TYPE = "access"


def _get_secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_access_expires():
    return current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES)


def generate_access_token(user_id: int, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        # PyJWT >= 2.10 insists that "sub" is a string
        "sub": str(user_id),
        "role": role,
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(seconds=_get_access_expires()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def token_response(user) -> dict:
    """Body returned by register and login."""
    return {
        "access_token": generate_access_token(user.id, user.role),
        "token_type": "Bearer",
        "expires_in": _get_access_expires(),
        "user": user.to_dict(),
    }


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.

    Raises jwt.InvalidTokenError (or a subclass such as
    ExpiredSignatureError) when the token cannot be trusted.
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    if payload.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError(f"Expected {TOKEN_TYPE} token, got {payload.get('type')}")
    return payload
