"""
SecureListify
Checklist domain models.

Models:
    - Checklist: user-owned instantiation of (optionally) a template
    - ChecklistItem: mutable copy of a template item plus remediation status
    - ChecklistShare: (user, permission) grant giving a non-owner access

Architecture chain: User → Checklist → ChecklistItem / ChecklistShare

Progress counters are stored on the checklist row but are derived data:
a before_flush listener recomputes them from the item collection on every
flush that touches a checklist or any of its items.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.orm import Session

from securelistify.models import db


def _uuid():
    return str(uuid.uuid4())


# ── Constants ────────────────────────────────────────────────────────────────

ITEM_STATUSES = ("Not Started", "In Progress", "Done", "Not Applicable")
DEFAULT_ITEM_STATUS = "Not Started"
DONE_STATUS = "Done"

SHARE_PERMISSIONS = ("read", "write")

# status label → progress counter key
PROGRESS_KEYS = {
    "Not Started": "not_started",
    "In Progress": "in_progress",
    "Done": "done",
    "Not Applicable": "not_applicable",
}


def compute_progress(items) -> dict:
    """Count items per status. The four counters always sum to ``total``."""
    progress = {key: 0 for key in PROGRESS_KEYS.values()}
    for item in items:
        key = PROGRESS_KEYS.get(item.status or DEFAULT_ITEM_STATUS, "not_started")
        progress[key] += 1
    progress["total"] = sum(progress.values())
    return progress


class Checklist(db.Model):
    __tablename__ = "checklists"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    system_type = db.Column(db.String(50), nullable=False)
    base_template_id = db.Column(
        db.String(36), db.ForeignKey("templates.id", ondelete="SET NULL"),
        nullable=True,
        comment="Provenance only; items are copied, never live-linked",
    )
    created_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    last_updated_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    # Derived, see _recalculate_progress_before_flush
    progress_not_started = db.Column(db.Integer, nullable=False, default=0)
    progress_in_progress = db.Column(db.Integer, nullable=False, default=0)
    progress_done = db.Column(db.Integer, nullable=False, default=0)
    progress_not_applicable = db.Column(db.Integer, nullable=False, default=0)
    progress_total = db.Column(db.Integer, nullable=False, default=0)

    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}

    created_by = db.relationship("User", foreign_keys=[created_by_id])
    last_updated_by = db.relationship("User", foreign_keys=[last_updated_by_id])
    base_template = db.relationship("Template", foreign_keys=[base_template_id])
    items = db.relationship(
        "ChecklistItem",
        back_populates="checklist",
        cascade="all, delete-orphan",
        order_by="ChecklistItem.position",
    )
    shares = db.relationship(
        "ChecklistShare",
        back_populates="checklist",
        cascade="all, delete-orphan",
        order_by="ChecklistShare.id",
    )

    # ── Derived state ────────────────────────────────────────────────────

    def recalculate_progress(self):
        progress = compute_progress(self.items)
        self.progress_not_started = progress["not_started"]
        self.progress_in_progress = progress["in_progress"]
        self.progress_done = progress["done"]
        self.progress_not_applicable = progress["not_applicable"]
        self.progress_total = progress["total"]
        return progress

    @property
    def progress(self) -> dict:
        return {
            "not_started": self.progress_not_started or 0,
            "in_progress": self.progress_in_progress or 0,
            "done": self.progress_done or 0,
            "not_applicable": self.progress_not_applicable or 0,
            "total": self.progress_total or 0,
        }

    @property
    def ordered_items(self):
        """Items by explicit order, ties broken by creation sequence."""
        return sorted(self.items, key=lambda i: (i.order, i.position))

    def find_item(self, item_id):
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_share(self, user_id):
        for share in self.shares:
            if share.user_id == user_id:
                return share
        return None

    def next_position(self) -> int:
        return max((i.position for i in self.items), default=-1) + 1

    # ── Serialization ────────────────────────────────────────────────────

    def to_dict(self, include_items=True):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "system_type": self.system_type,
            "base_template": (
                {"id": self.base_template.id, "name": self.base_template.name}
                if self.base_template else None
            ),
            "created_by": self.created_by.to_ref() if self.created_by else None,
            "shared_with": [s.to_dict() for s in self.shares],
            "last_updated_by": self.last_updated_by.to_ref() if self.last_updated_by else None,
            "progress": self.progress,
            "version": self.version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            d["items"] = [i.to_dict() for i in self.ordered_items]
        return d

    def __repr__(self):
        return f"<Checklist {self.id} {self.name!r}>"


class ChecklistItem(db.Model):
    __tablename__ = "checklist_items"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    checklist_id = db.Column(
        db.String(36), db.ForeignKey("checklists.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    position = db.Column(
        db.Integer, nullable=False, default=0,
        comment="Creation sequence within the checklist; never rewritten",
    )
    order = db.Column(db.Integer, nullable=False, default=0)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=False)
    risk_rating = db.Column(db.String(20), nullable=False)
    reference_url = db.Column(db.String(1000), nullable=False)
    category = db.Column(db.String(200), nullable=False)
    tags = db.Column(db.JSON, default=list)
    compliance_frameworks = db.Column(db.JSON, default=list)
    status = db.Column(db.String(20), nullable=False, default=DEFAULT_ITEM_STATUS)
    notes = db.Column(db.Text, default="")
    completed_at = db.Column(db.DateTime, nullable=True)
    completed_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    checklist = db.relationship("Checklist", back_populates="items")
    completed_by = db.relationship("User", foreign_keys=[completed_by_id])

    def apply_status(self, status, actor, now=None):
        """Set status; completion metadata exists only while status is Done.

        Moving to Done always re-stamps the completion time and actor.
        Moving to anything else clears both fields.
        """
        self.status = status
        if status == DONE_STATUS:
            self.completed_at = now or datetime.now(timezone.utc)
            self.completed_by = actor
        else:
            self.completed_at = None
            self.completed_by = None

    def to_dict(self):
        return {
            "id": self.id,
            "order": self.order,
            "title": self.title,
            "description": self.description,
            "risk_rating": self.risk_rating,
            "reference_url": self.reference_url,
            "category": self.category,
            "tags": list(self.tags or []),
            "compliance_frameworks": list(self.compliance_frameworks or []),
            "status": self.status,
            "notes": self.notes or "",
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "completed_by": self.completed_by.to_ref() if self.completed_by else None,
        }


class ChecklistShare(db.Model):
    __tablename__ = "checklist_shares"

    id = db.Column(db.Integer, primary_key=True)
    checklist_id = db.Column(
        db.String(36), db.ForeignKey("checklists.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    permission = db.Column(db.String(10), nullable=False, default="read")  # read | write

    __table_args__ = (
        db.UniqueConstraint("checklist_id", "user_id", name="uq_checklist_share_user"),
    )

    checklist = db.relationship("Checklist", back_populates="shares")
    user = db.relationship("User")

    def to_dict(self):
        return {
            "user": self.user.to_ref() if self.user else {"id": self.user_id},
            "permission": self.permission,
        }


# ── Progress sync ────────────────────────────────────────────────────────────


@event.listens_for(Session, "before_flush")
def _recalculate_progress_before_flush(session, flush_context, instances):
    """Recompute stored progress for every checklist touched by this flush."""
    touched = {}
    with session.no_autoflush:
        for obj in list(session.new) + list(session.dirty):
            if isinstance(obj, Checklist):
                touched[id(obj)] = obj
            elif isinstance(obj, ChecklistItem) and obj.checklist is not None:
                touched[id(obj.checklist)] = obj.checklist
        for checklist in touched.values():
            if checklist in session.deleted:
                continue
            checklist.recalculate_progress()
