"""
SecureListify
Template domain models.

Models:
    - Template: reusable, named definition of checklist items for a system type
    - TemplateItem: one control inside a template (title, risk rating, reference, ...)

Templates are never live-linked to checklists: instantiation copies item
fields, so later template edits do not reach existing checklists.
"""

import uuid
from datetime import datetime, timezone

from securelistify.models import db


def _uuid():
    return str(uuid.uuid4())


# ── Constants ────────────────────────────────────────────────────────────────

SYSTEM_TYPES = (
    "Linux Server",
    "Windows Server",
    "Web Application",
    "Docker Container",
    "Kubernetes Cluster",
    "AWS EC2",
    "AWS S3",
    "Azure VM",
    "GCP Compute",
    "Network Device",
    "Database",
    "Custom",
)

RISK_RATINGS = ("Low", "Medium", "High", "Critical")


class Template(db.Model):
    __tablename__ = "templates"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=False)
    system_type = db.Column(db.String(50), nullable=False, index=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False)
    created_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    created_by = db.relationship("User", foreign_keys=[created_by_id])
    items = db.relationship(
        "TemplateItem",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TemplateItem.position",
    )

    def to_dict(self, include_items=True):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "system_type": self.system_type,
            "is_public": self.is_public,
            "created_by": self.created_by.to_ref() if self.created_by else None,
            "item_count": len(self.items),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            d["items"] = [i.to_dict() for i in self.items]
        return d

    def to_document(self):
        """Portable representation — no ids, owners or timestamps."""
        return {
            "name": self.name,
            "description": self.description,
            "system_type": self.system_type,
            "is_public": self.is_public,
            "items": [i.to_document() for i in self.items],
        }

    def __repr__(self):
        return f"<Template {self.name!r}>"


class TemplateItem(db.Model):
    __tablename__ = "template_items"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    template_id = db.Column(
        db.String(36), db.ForeignKey("templates.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=False)
    risk_rating = db.Column(db.String(20), nullable=False)  # Low | Medium | High | Critical
    reference_url = db.Column(db.String(1000), nullable=False)
    category = db.Column(db.String(200), nullable=False)
    tags = db.Column(db.JSON, default=list)
    compliance_frameworks = db.Column(db.JSON, default=list)

    template = db.relationship("Template", back_populates="items")

    def to_document(self):
        return {
            "title": self.title,
            "description": self.description,
            "risk_rating": self.risk_rating,
            "reference_url": self.reference_url,
            "category": self.category,
            "tags": list(self.tags or []),
            "compliance_frameworks": list(self.compliance_frameworks or []),
        }

    def to_dict(self):
        d = self.to_document()
        d["id"] = self.id
        return d
