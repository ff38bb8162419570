"""
Seed Service — bundled public templates and the admin account that owns them.

Template definitions live in ``securelistify/data/templates/*.json`` and use
the same document shape as template import/export. Seeding is idempotent:
templates whose name already exists are skipped.
"""

import json
import logging
from pathlib import Path

from sqlalchemy import select

from securelistify.core.exceptions import ValidationError
from securelistify.models import db
from securelistify.models.template import Template
from securelistify.services import template_service
from securelistify.services.user_service import create_user, get_user_by_email, normalize_email

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "data" / "templates"


def ensure_admin(email: str, password: str | None, name: str = "Admin User"):
    """Return the admin account for ``email``, creating it when absent."""
    email = normalize_email(email)
    admin = get_user_by_email(email)
    if admin is not None:
        if not admin.is_admin:
            admin.role = "admin"
            logger.info("Promoted existing user to admin user_id=%s", admin.id)
        return admin
    if not password:
        raise ValidationError("ADMIN_PASSWORD must be set to create the admin account",
                              details={"ADMIN_PASSWORD": "required"})
    admin = create_user(name, email, password, role="admin")
    logger.info("Admin user created user_id=%s", admin.id)
    return admin


def load_template_documents(directory: Path = TEMPLATE_DIR) -> list[tuple[str, dict]]:
    documents = []
    for path in sorted(directory.glob("*.json")):
        with path.open(encoding="utf-8") as fh:
            documents.append((path.name, json.load(fh)))
    return documents


def seed_templates(admin, directory: Path = TEMPLATE_DIR) -> dict:
    """Create every bundled template not yet present. Returns counts."""
    created, skipped = [], []
    for filename, document in load_template_documents(directory):
        name = document.get("name")
        exists = db.session.execute(select(Template.id).where(Template.name == name)).first()
        if exists is not None:
            logger.info("Template %r already exists, skipping", name)
            skipped.append(name)
            continue
        document = {**document, "is_public": True}
        template = template_service.create_template(admin, document)
        logger.info("Seeded template %r from %s", template.name, filename)
        created.append(template.name)
    return {"created": created, "skipped": skipped}
