"""Checklist lifecycle — instantiation, item status, ordering and metadata.

Rules:
  - Authorization is checked before items are resolved and before any
    payload field is applied.
  - Payloads are validated completely before the first mutation, so a
    rejected call leaves the stored checklist untouched.
  - Progress counters are recomputed by the before_flush listener in
    securelistify.models.checklist; services never write them directly.
  - db.session.commit() happens only through ``commit_checklist``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm.exc import StaleDataError

from securelistify.core.exceptions import ConflictError, NotFoundError, ValidationError
from securelistify.models import db
from securelistify.models.checklist import (
    DEFAULT_ITEM_STATUS,
    ITEM_STATUSES,
    Checklist,
    ChecklistItem,
    ChecklistShare,
)
from securelistify.models.template import SYSTEM_TYPES
from securelistify.services import permission_service, template_service
from securelistify.utils.helpers import optional_text, require_choice, require_mapping, require_text

logger = logging.getLogger(__name__)


def _copy_item_fields(source) -> dict:
    return {
        "title": source.title,
        "description": source.description,
        "risk_rating": source.risk_rating,
        "reference_url": source.reference_url,
        "category": source.category,
        "tags": list(source.tags or []),
        "compliance_frameworks": list(source.compliance_frameworks or []),
    }


def touch(checklist: Checklist, caller) -> None:
    """Stamp the acting user and modification time on a checklist."""
    checklist.last_updated_by = caller
    checklist.updated_at = datetime.now(timezone.utc)


def commit_checklist(checklist: Checklist) -> None:
    """Commit, turning a lost optimistic-lock race into ConflictError."""
    try:
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        logger.warning("Concurrent update rejected checklist_id=%s", checklist.id)
        raise ConflictError(resource="Checklist", field="version") from exc


def _load(checklist_id: str) -> Checklist:
    checklist = db.session.get(Checklist, checklist_id)
    if checklist is None:
        raise NotFoundError(resource="Checklist", resource_id=checklist_id)
    return checklist


# ── Queries ───────────────────────────────────────────────────────────────────


def list_checklists(caller) -> list[Checklist]:
    """Checklists the caller owns or is shared on, most recently updated first."""
    shared_ids = select(ChecklistShare.checklist_id).where(ChecklistShare.user_id == caller.id)
    stmt = (
        select(Checklist)
        .where(or_(Checklist.created_by_id == caller.id, Checklist.id.in_(shared_ids)))
        .order_by(Checklist.updated_at.desc(), Checklist.created_at.desc())
    )
    return db.session.execute(stmt).scalars().all()


def get_checklist(caller, checklist_id: str) -> Checklist:
    checklist = _load(checklist_id)
    permission_service.require_read(caller, checklist)
    return checklist


def get_writable_checklist(caller, checklist_id: str) -> Checklist:
    checklist = _load(checklist_id)
    permission_service.require_write(caller, checklist)
    return checklist


def get_owned_checklist(caller, checklist_id: str, action: str) -> Checklist:
    checklist = _load(checklist_id)
    permission_service.require_owner(caller, checklist, action)
    return checklist


# ── Instantiation ─────────────────────────────────────────────────────────────


def create_checklist(caller, data) -> Checklist:
    """Create a checklist, copying items from ``base_template_id`` if given.

    Copied items get order 0..N-1 and status "Not Started". The template
    must exist; it is copied, never linked.
    """
    data = require_mapping(data)
    name = require_text(data, "name", max_len=200)
    description = optional_text(data, "description")
    system_type = require_choice(data, "system_type", SYSTEM_TYPES)

    template = None
    template_id = data.get("base_template_id")
    if template_id is not None and not isinstance(template_id, str):
        raise ValidationError("base_template_id must be a string",
                              details={"base_template_id": "expected string"})
    if template_id:
        template = template_service.load_template(template_id)

    checklist = Checklist(
        name=name,
        description=description,
        system_type=system_type,
        base_template=template,
        created_by=caller,
        last_updated_by=caller,
    )
    if template is not None:
        checklist.items = [
            ChecklistItem(position=i, order=i, status=DEFAULT_ITEM_STATUS, notes="",
                          **_copy_item_fields(source))
            for i, source in enumerate(template.items)
        ]
    checklist.recalculate_progress()
    db.session.add(checklist)
    commit_checklist(checklist)
    logger.info(
        "Checklist created checklist_id=%s template_id=%s items=%d",
        checklist.id, template.id if template else None, len(checklist.items),
        extra={"checklist_id": checklist.id, "user_id": caller.id},
    )
    return checklist


# ── Item status engine ────────────────────────────────────────────────────────


def update_item(caller, checklist_id: str, item_id: str, data) -> Checklist:
    """Apply ``status`` and/or ``notes`` to one item; returns the checklist."""
    checklist = get_writable_checklist(caller, checklist_id)
    item = checklist.find_item(item_id)
    if item is None:
        raise NotFoundError(resource="Checklist item", resource_id=item_id)

    data = require_mapping(data)
    status = None
    if data.get("status") is not None:
        status = require_choice(data, "status", ITEM_STATUSES)
    notes = None
    if data.get("notes") is not None:
        notes = optional_text(data, "notes")

    if status is not None:
        item.apply_status(status, caller)
    if notes is not None:
        item.notes = notes
    touch(checklist, caller)
    commit_checklist(checklist)
    logger.info("Checklist item updated checklist_id=%s item_id=%s status=%s",
                checklist.id, item.id, item.status)
    return checklist


def reorder_items(caller, checklist_id: str, ordered_ids) -> Checklist:
    """Set ``order`` of each listed item to its index in ``ordered_ids``.

    Items not named keep their current order. Any unknown id rejects the
    whole request.
    """
    checklist = get_writable_checklist(caller, checklist_id)
    if not isinstance(ordered_ids, list) or not all(isinstance(i, str) for i in ordered_ids):
        raise ValidationError("items must be a list of item ids", details={"items": "expected list of ids"})

    by_id = {item.id: item for item in checklist.items}
    unknown = [item_id for item_id in ordered_ids if item_id not in by_id]
    if unknown:
        raise ValidationError(
            "Invalid item IDs provided",
            details={"items": f"unknown item ids: {', '.join(unknown)}"},
        )

    for index, item_id in enumerate(ordered_ids):
        by_id[item_id].order = index
    touch(checklist, caller)
    commit_checklist(checklist)
    logger.info("Checklist items reordered checklist_id=%s count=%d", checklist.id, len(ordered_ids))
    return checklist


# ── Metadata ──────────────────────────────────────────────────────────────────


def _parse_checklist_item(entry, index: int) -> dict:
    fields = template_service.parse_item(entry, index)
    if entry.get("status") is not None:
        if entry["status"] not in ITEM_STATUSES:
            raise ValidationError(
                f"items[{index}]: status must be one of: {', '.join(ITEM_STATUSES)}",
                details={f"items[{index}].status": f"invalid value {entry['status']!r}"},
            )
        fields["status"] = entry["status"]
    if "notes" in entry:
        try:
            fields["notes"] = optional_text(entry, "notes")
        except ValidationError as exc:
            raise ValidationError(f"items[{index}]: {exc}",
                                  details={f"items[{index}].notes": "expected string"}) from exc
    if "order" in entry:
        if not isinstance(entry["order"], int) or isinstance(entry["order"], bool):
            raise ValidationError(f"items[{index}]: order must be an integer",
                                  details={f"items[{index}].order": "expected integer"})
        fields["order"] = entry["order"]
    if entry.get("id") is not None and not isinstance(entry["id"], str):
        raise ValidationError(f"items[{index}]: id must be a string",
                              details={f"items[{index}].id": "expected string"})
    fields["id"] = entry.get("id")
    return fields


def _replace_items(caller, checklist: Checklist, entries: list[dict]) -> None:
    existing = {item.id: item for item in checklist.items}
    next_position = checklist.next_position()
    items = []
    for index, fields in enumerate(entries):
        item_id = fields.pop("id")
        status = fields.pop("status", None)
        fields.setdefault("order", index)
        item = existing.pop(item_id, None) if item_id else None
        if item is None:
            item = ChecklistItem(position=next_position, status=DEFAULT_ITEM_STATUS, notes="")
            next_position += 1
        for key, value in fields.items():
            setattr(item, key, value)
        if status is not None and status != item.status:
            item.apply_status(status, caller)
        items.append(item)
    checklist.items = items


def update_checklist(caller, checklist_id: str, data) -> Checklist:
    """Partial update of name, description, system_type and items.

    Other keys are ignored. ``items`` replaces the whole list; entries
    whose ``id`` matches an existing item update it in place.
    """
    checklist = get_writable_checklist(caller, checklist_id)
    data = require_mapping(data)

    fields = {}
    if "name" in data:
        fields["name"] = require_text(data, "name", max_len=200)
    if "description" in data:
        fields["description"] = optional_text(data, "description")
    if "system_type" in data:
        fields["system_type"] = require_choice(data, "system_type", SYSTEM_TYPES)
    entries = None
    if "items" in data:
        if not isinstance(data["items"], list):
            raise ValidationError("items must be a list", details={"items": "expected list"})
        entries = [_parse_checklist_item(entry, i) for i, entry in enumerate(data["items"])]

    for key, value in fields.items():
        setattr(checklist, key, value)
    if entries is not None:
        _replace_items(caller, checklist, entries)
    touch(checklist, caller)
    commit_checklist(checklist)
    logger.info("Checklist updated checklist_id=%s fields=%s",
                checklist.id, sorted(fields) + (["items"] if entries is not None else []))
    return checklist


def delete_checklist(caller, checklist_id: str) -> None:
    """Hard delete; items and shares go with the checklist."""
    checklist = get_owned_checklist(caller, checklist_id, "delete")
    db.session.delete(checklist)
    db.session.commit()
    logger.info("Checklist deleted checklist_id=%s", checklist_id,
                extra={"checklist_id": checklist_id, "user_id": caller.id})
