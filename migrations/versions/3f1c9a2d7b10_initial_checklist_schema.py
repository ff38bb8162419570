"""initial_checklist_schema

Creates the SecureListify tables:
  - users              — accounts (user | admin)
  - templates          — reusable checklist definitions
  - template_items     — controls inside a template
  - checklists         — user-owned instantiations with stored progress + version
  - checklist_items    — mutable item copies with status/completion metadata
  - checklist_shares   — (checklist, user, permission) grants

Tables are created conditionally so the migration is safe against a
database that already received them through db.create_all().

Revision ID: 3f1c9a2d7b10
Revises:
Create Date: 2026-10-19 09:12:40.118204
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '3f1c9a2d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())

    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("password_hash", sa.String(length=256), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if "templates" not in existing:
        op.create_table(
            "templates",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("system_type", sa.String(length=50), nullable=False),
            sa.Column("is_public", sa.Boolean(), nullable=False),
            sa.Column("created_by_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )
        op.create_index("ix_templates_system_type", "templates", ["system_type"])
        op.create_index("ix_templates_created_by_id", "templates", ["created_by_id"])

    if "template_items" not in existing:
        op.create_table(
            "template_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("template_id", sa.String(length=36), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("risk_rating", sa.String(length=20), nullable=False),
            sa.Column("reference_url", sa.String(length=1000), nullable=False),
            sa.Column("category", sa.String(length=200), nullable=False),
            sa.Column("tags", sa.JSON(), nullable=True),
            sa.Column("compliance_frameworks", sa.JSON(), nullable=True),
            sa.ForeignKeyConstraint(["template_id"], ["templates.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_template_items_template_id", "template_items", ["template_id"])

    if "checklists" not in existing:
        op.create_table(
            "checklists",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("system_type", sa.String(length=50), nullable=False),
            sa.Column("base_template_id", sa.String(length=36), nullable=True),
            sa.Column("created_by_id", sa.Integer(), nullable=False),
            sa.Column("last_updated_by_id", sa.Integer(), nullable=True),
            sa.Column("progress_not_started", sa.Integer(), nullable=False),
            sa.Column("progress_in_progress", sa.Integer(), nullable=False),
            sa.Column("progress_done", sa.Integer(), nullable=False),
            sa.Column("progress_not_applicable", sa.Integer(), nullable=False),
            sa.Column("progress_total", sa.Integer(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["base_template_id"], ["templates.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["last_updated_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_checklists_created_by_id", "checklists", ["created_by_id"])

    if "checklist_items" not in existing:
        op.create_table(
            "checklist_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("checklist_id", sa.String(length=36), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("order", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("risk_rating", sa.String(length=20), nullable=False),
            sa.Column("reference_url", sa.String(length=1000), nullable=False),
            sa.Column("category", sa.String(length=200), nullable=False),
            sa.Column("tags", sa.JSON(), nullable=True),
            sa.Column("compliance_frameworks", sa.JSON(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("completed_at", sa.DateTime(), nullable=True),
            sa.Column("completed_by_id", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["checklist_id"], ["checklists.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["completed_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_checklist_items_checklist_id", "checklist_items", ["checklist_id"])

    if "checklist_shares" not in existing:
        op.create_table(
            "checklist_shares",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("checklist_id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("permission", sa.String(length=10), nullable=False),
            sa.ForeignKeyConstraint(["checklist_id"], ["checklists.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("checklist_id", "user_id", name="uq_checklist_share_user"),
        )
        op.create_index("ix_checklist_shares_checklist_id", "checklist_shares", ["checklist_id"])
        op.create_index("ix_checklist_shares_user_id", "checklist_shares", ["user_id"])


def downgrade():
    for table in ("checklist_shares", "checklist_items", "checklists",
                  "template_items", "templates", "users"):
        op.drop_table(table)
