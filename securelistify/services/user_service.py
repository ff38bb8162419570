"""
User Service — registration, credential checks and lookups.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select

from securelistify.core.exceptions import AuthenticationError, ConflictError, ValidationError
from securelistify.models import db
from securelistify.models.user import USER_ROLES, User
from securelistify.utils.crypto import hash_password, verify_password
from securelistify.utils.helpers import require_text

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(email) -> str:
    """Validate syntax and return the lower-cased address."""
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required", details={"email": "required"})
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": "invalid"}) from e
    return valid.normalized.lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.execute(
        select(User).where(User.email == email.strip().lower())
    ).scalar_one_or_none()


def create_user(name: str, email: str, password: str, role: str = "user") -> User:
    """Create an account. The caller commits."""
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}",
                              details={"role": "invalid"})
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": f"min length {MIN_PASSWORD_LENGTH}"},
        )
    if get_user_by_email(email) is not None:
        raise ConflictError(resource="User", field="email", value=email)

    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    db.session.add(user)
    db.session.flush()
    return user


def register_user(data: dict) -> User:
    """Self-service registration; always creates a ``user``-role account."""
    name = require_text(data, "name", max_len=200)
    email = normalize_email(data.get("email"))
    user = create_user(name, email, data.get("password"))
    db.session.commit()
    logger.info("User registered user_id=%s", user.id)
    return user


def authenticate_user(email, password) -> User:
    """Return the user for valid credentials, else raise AuthenticationError."""
    if not email or not password:
        raise ValidationError("Please provide an email and password",
                              details={"email": "required", "password": "required"})
    user = get_user_by_email(str(email))
    if user is None or not verify_password(str(password), user.password_hash):
        logger.warning("Failed login attempt")
        raise AuthenticationError("Invalid credentials")
    return user


def list_users() -> list[User]:
    return db.session.execute(select(User).order_by(User.id)).scalars().all()
