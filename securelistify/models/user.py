"""
User model — the caller identity every checklist operation is evaluated against.

Roles:
    user   — default for self-registered accounts
    admin  — may update/delete any template and list all users
"""

from datetime import datetime, timezone

from securelistify.models import db

USER_ROLES = ("user", "admin")


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")  # user | admin
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_ref(self):
        """Compact reference used when a user is embedded in another document."""
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User #{self.id} {self.email}>"
