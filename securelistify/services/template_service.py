"""Template Store — reusable checklist definitions.

Rules:
  - Public templates are readable by everyone; private ones by their
    creator (and admins).
  - Update/delete require the creator or the ``admin`` role.
  - Names are unique across all templates.
  - Every payload is fully validated before anything is written.
"""

from __future__ import annotations

import json
import logging
import os

import yaml
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from securelistify.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from securelistify.models import db
from securelistify.models.template import RISK_RATINGS, SYSTEM_TYPES, Template, TemplateItem
from securelistify.utils.helpers import (
    download_filename,
    optional_str_list,
    optional_text,
    require_choice,
    require_mapping,
    require_text,
)

logger = logging.getLogger(__name__)

IMPORT_EXTENSIONS = (".json", ".yaml", ".yml")

# format → (content type, file extension)
EXPORT_FORMATS = {
    "json": ("application/json", "json"),
    "yaml": ("application/yaml", "yaml"),
    "yml": ("application/yaml", "yaml"),
}


# ── Validation ────────────────────────────────────────────────────────────────


def parse_item(data, index: int) -> dict:
    """Validate one item payload and return the normalized field dict.

    Field errors are reported as ``items[<index>].<field>``.
    """
    label = f"items[{index}]"
    data = require_mapping(data, label)
    try:
        return {
            "title": require_text(data, "title", max_len=300),
            "description": require_text(data, "description"),
            "risk_rating": require_choice(data, "risk_rating", RISK_RATINGS),
            "reference_url": require_text(data, "reference_url", max_len=1000),
            "category": require_text(data, "category", max_len=200),
            "tags": optional_str_list(data, "tags"),
            "compliance_frameworks": optional_str_list(data, "compliance_frameworks"),
        }
    except ValidationError as exc:
        details = {f"{label}.{k}": v for k, v in exc.details.items()}
        raise ValidationError(f"{label}: {exc}", details=details) from exc


def parse_items(value) -> list[dict]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("items must be a list", details={"items": "expected list"})
    return [parse_item(entry, i) for i, entry in enumerate(value)]


def _parse_template(data, partial: bool = False) -> dict:
    data = require_mapping(data)
    fields = {}
    if not partial or "name" in data:
        fields["name"] = require_text(data, "name", max_len=200)
    if not partial or "description" in data:
        fields["description"] = require_text(data, "description")
    if not partial or "system_type" in data:
        fields["system_type"] = require_choice(data, "system_type", SYSTEM_TYPES)
    if "is_public" in data:
        if not isinstance(data["is_public"], bool):
            raise ValidationError("is_public must be a boolean", details={"is_public": "expected boolean"})
        fields["is_public"] = data["is_public"]
    if not partial or "items" in data:
        fields["items"] = parse_items(data.get("items"))
    return fields


def _ensure_unique_name(name: str, exclude_id: str | None = None) -> None:
    stmt = select(Template.id).where(Template.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Template.id != exclude_id)
    if db.session.execute(stmt).first() is not None:
        raise ConflictError(resource="Template", field="name", value=name)


def _commit(name: str) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(resource="Template", field="name", value=name) from exc


# ── Authorization ─────────────────────────────────────────────────────────────


def can_view(caller, template: Template) -> bool:
    return template.is_public or template.created_by_id == caller.id or caller.is_admin


def can_manage(caller, template: Template) -> bool:
    return template.created_by_id == caller.id or caller.is_admin


def load_template(template_id: str) -> Template:
    template = db.session.get(Template, template_id)
    if template is None:
        raise NotFoundError(resource="Template", resource_id=template_id)
    return template


# ── Queries ───────────────────────────────────────────────────────────────────


def list_templates(caller, system_type: str | None = None) -> list[Template]:
    """Public templates plus the caller's own private ones, by name."""
    stmt = select(Template).where(
        or_(Template.is_public.is_(True), Template.created_by_id == caller.id)
    )
    if system_type:
        stmt = stmt.where(Template.system_type == system_type)
    return db.session.execute(stmt.order_by(Template.name)).scalars().all()


def get_template(caller, template_id: str) -> Template:
    template = load_template(template_id)
    if not can_view(caller, template):
        logger.warning("Template read denied template_id=%s user_id=%s", template_id, caller.id)
        raise ForbiddenError("Not authorized to access this template",
                             resource="Template", resource_id=template_id)
    return template


# ── Mutations ─────────────────────────────────────────────────────────────────


def _replace_items(template: Template, items: list[dict]) -> None:
    template.items = [TemplateItem(position=i, **fields) for i, fields in enumerate(items)]


def create_template(caller, data) -> Template:
    fields = _parse_template(data)
    _ensure_unique_name(fields["name"])

    items = fields.pop("items")
    template = Template(created_by=caller, **fields)
    _replace_items(template, items)
    db.session.add(template)
    _commit(template.name)
    logger.info("Template created template_id=%s items=%d", template.id, len(items))
    return template


def update_template(caller, template_id: str, data) -> Template:
    template = load_template(template_id)
    if not can_manage(caller, template):
        logger.warning("Template update denied template_id=%s user_id=%s", template_id, caller.id)
        raise ForbiddenError("Not authorized to update this template",
                             resource="Template", resource_id=template_id)

    fields = _parse_template(data, partial=True)
    if "name" in fields:
        _ensure_unique_name(fields["name"], exclude_id=template.id)

    items = fields.pop("items", None)
    for key, value in fields.items():
        setattr(template, key, value)
    if items is not None:
        _replace_items(template, items)
    _commit(template.name)
    logger.info("Template updated template_id=%s", template.id)
    return template


def delete_template(caller, template_id: str) -> None:
    """Remove a template. Checklists created from it keep their copied items."""
    template = load_template(template_id)
    if not can_manage(caller, template):
        logger.warning("Template delete denied template_id=%s user_id=%s", template_id, caller.id)
        raise ForbiddenError("Not authorized to delete this template",
                             resource="Template", resource_id=template_id)
    db.session.delete(template)
    db.session.commit()
    logger.info("Template deleted template_id=%s", template_id)


# ── Import / export ───────────────────────────────────────────────────────────


def parse_document(filename: str, content: bytes | str):
    """Parse an uploaded JSON or YAML document by file extension."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in IMPORT_EXTENSIONS:
        raise ValidationError(
            "Unsupported file format. Please upload JSON or YAML file",
            details={"file": f"extension must be one of {', '.join(IMPORT_EXTENSIONS)}"},
        )
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError("File must be UTF-8 encoded", details={"file": "encoding"}) from exc
    try:
        if ext == ".json":
            return json.loads(content)
        return yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValidationError(f"Could not parse {ext[1:].upper()} file: {exc}",
                              details={"file": "parse error"}) from exc


def import_template(caller, filename: str, content: bytes | str) -> Template:
    """Create a template (owned by the caller) from an uploaded document."""
    data = parse_document(filename, content)
    template = create_template(caller, data)
    logger.info("Template imported template_id=%s source=%s", template.id, filename)
    return template


def render_template_document(template: Template, fmt: str) -> str:
    document = template.to_document()
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


def export_template(caller, template_id: str, fmt: str) -> tuple[str, str, str]:
    """Return ``(body, content_type, filename)`` for a template download."""
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            f"Unsupported export format {fmt!r}",
            details={"format": f"must be one of {', '.join(EXPORT_FORMATS)}"},
        )
    template = get_template(caller, template_id)
    content_type, ext = EXPORT_FORMATS[fmt]
    body = render_template_document(template, fmt)
    return body, content_type, download_filename(template.name, f".{ext}")
