"""Bundled template seeding and the seed-templates CLI command."""

import json

import pytest

from securelistify.core.exceptions import ValidationError
from securelistify.models import db
from securelistify.models.template import Template
from securelistify.services.seed_service import (
    TEMPLATE_DIR,
    ensure_admin,
    load_template_documents,
    seed_templates,
)
from securelistify.services.template_service import parse_items


class TestBundledDocuments:
    def test_every_document_is_a_valid_template(self):
        documents = load_template_documents()
        assert [name for name, _ in documents] == [
            "docker_container_security.json",
            "linux_server_hardening.json",
            "web_application_security.json",
        ]
        for _, document in documents:
            assert document["name"]
            assert parse_items(document["items"])


class TestEnsureAdmin:
    def test_creates_admin(self):
        admin = ensure_admin("Root@Example.com", "seed-password-1", "Root")
        assert admin.is_admin
        assert admin.email == "root@example.com"

    def test_promotes_existing_user(self, outsider):
        admin = ensure_admin(outsider.email, None)
        assert admin.id == outsider.id
        assert admin.role == "admin"

    def test_missing_password(self):
        with pytest.raises(ValidationError):
            ensure_admin("nobody@example.com", None)


class TestSeedTemplates:
    def test_seed_is_idempotent(self, admin):
        first = seed_templates(admin)
        assert len(first["created"]) == 3
        assert first["skipped"] == []

        second = seed_templates(admin)
        assert second["created"] == []
        assert sorted(second["skipped"]) == sorted(first["created"])
        assert db.session.query(Template).count() == 3

    def test_seeded_templates_are_public(self, admin):
        seed_templates(admin)
        assert all(t.is_public for t in db.session.query(Template).all())

    def test_custom_directory(self, admin, tmp_path, item_payload):
        (tmp_path / "custom.json").write_text(json.dumps({
            "name": "Custom Baseline",
            "description": "one item",
            "system_type": "Custom",
            "items": [item_payload("Rotate keys")],
        }))
        result = seed_templates(admin, tmp_path)
        assert result["created"] == ["Custom Baseline"]

    def test_template_dir_ships_with_package(self):
        assert TEMPLATE_DIR.is_dir()


class TestSeedCommand:
    def test_cli_seeds_templates(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "ADMIN_EMAIL", "seed-admin@example.com")
        monkeypatch.setitem(app.config, "ADMIN_PASSWORD", "seed-password-1")
        runner = app.test_cli_runner()

        result = runner.invoke(args=["seed-templates"])
        assert result.exit_code == 0, result.output
        assert "Seeded 3 templates, skipped 0." in result.output

        result = runner.invoke(args=["seed-templates"])
        assert "Seeded 0 templates, skipped 3." in result.output

    def test_cli_requires_password(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "ADMIN_EMAIL", "fresh-admin@example.com")
        monkeypatch.setitem(app.config, "ADMIN_PASSWORD", None)
        result = app.test_cli_runner().invoke(args=["seed-templates"])
        assert result.exit_code != 0
        assert "ADMIN_PASSWORD" in result.output
