"""
Crypto utilities — bcrypt password hashing.
"""

import bcrypt
from flask import current_app, has_app_context

DEFAULT_BCRYPT_ROUNDS = 12


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt (BCRYPT_LOG_ROUNDS, default 12)."""
    rounds = DEFAULT_BCRYPT_ROUNDS
    if has_app_context():
        rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", DEFAULT_BCRYPT_ROUNDS)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its bcrypt hash."""
    if not password_hash or not password_hash.startswith(("$2b$", "$2a$")):
        return False
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )
