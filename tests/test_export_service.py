"""
Export Formatter tests.

Coverage:
  1. Logical export object: owner name, progress, source-order category grouping
  2. JSON / YAML determinism for a fixed export timestamp
  3. Markdown status symbols, hostname links, completion line, footer
  4. PDF structure (header, reproducibility)
  5. Read-path authorization and unsupported formats
  6. Malformed reference URL surfaces SerializationError
"""

import json
from datetime import datetime, timezone

import pytest
import yaml

from securelistify.core.exceptions import ForbiddenError, SerializationError, ValidationError
from securelistify.services import checklist_service, export_service, sharing_service

EXPORTED_AT = datetime(2026, 5, 4, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def checklist(owner, item_payload):
    created = checklist_service.create_checklist(owner, {
        "name": "Quarterly Web Audit",
        "description": "Q2 review",
        "system_type": "Web Application",
    })
    checklist = checklist_service.update_checklist(owner, created.id, {"items": [
        item_payload("Enable HSTS", "High", "Transport", tags=["tls"], compliance_frameworks=["ASVS 9.1"]),
        item_payload("Set CSP", "Medium", "Headers"),
        item_payload("Renew certificates", "Low", "Transport"),
        item_payload("Legacy endpoint", "Critical", "Headers"),
    ]})
    by_title = {i.title: i for i in checklist.items}
    checklist_service.update_item(owner, checklist.id, by_title["Enable HSTS"].id,
                                  {"status": "Done", "notes": "Preloaded"})
    checklist_service.update_item(owner, checklist.id, by_title["Set CSP"].id, {"status": "In Progress"})
    checklist_service.update_item(owner, checklist.id, by_title["Legacy endpoint"].id,
                                  {"status": "Not Applicable"})
    return checklist


class TestExportObject:
    def test_groups_by_first_appearance(self, checklist):
        payload = export_service.build_export(checklist, EXPORTED_AT)
        assert [g["category"] for g in payload["categories"]] == ["Transport", "Headers"]
        assert [i["title"] for i in payload["categories"][0]["items"]] == ["Enable HSTS", "Renew certificates"]
        assert [i["title"] for i in payload["categories"][1]["items"]] == ["Set CSP", "Legacy endpoint"]

    def test_metadata_and_progress(self, checklist):
        payload = export_service.build_export(checklist, EXPORTED_AT)
        assert payload["created_by"] == "Olivia Owner"
        assert payload["exported_at"] == "2026-05-04T09:30:00+00:00"
        assert payload["progress"] == {
            "not_started": 1, "in_progress": 1, "done": 1, "not_applicable": 1, "total": 4,
        }
        done = payload["categories"][0]["items"][0]
        assert done["completed_by"] == "Olivia Owner"
        assert done["completed_at"] is not None
        assert done["notes"] == "Preloaded"

    def test_reorder_does_not_change_export_order(self, owner, checklist):
        ids = {i.title: i.id for i in checklist.items}
        checklist_service.reorder_items(owner, checklist.id, [
            ids["Legacy endpoint"], ids["Renew certificates"], ids["Set CSP"], ids["Enable HSTS"],
        ])
        payload = export_service.build_export(checklist, EXPORTED_AT)
        assert [g["category"] for g in payload["categories"]] == ["Transport", "Headers"]
        assert [i["title"] for i in payload["categories"][0]["items"]] == ["Enable HSTS", "Renew certificates"]
        assert [i["title"] for i in payload["categories"][1]["items"]] == ["Set CSP", "Legacy endpoint"]

    def test_markdown_keeps_source_order_after_reorder(self, owner, checklist):
        ids = {i.title: i.id for i in checklist.items}
        checklist_service.reorder_items(owner, checklist.id, [ids["Renew certificates"], ids["Enable HSTS"]])
        text = export_service.render_markdown(checklist, EXPORTED_AT).decode("utf-8")
        assert text.index("**1. Enable HSTS**") < text.index("**2. Renew certificates**")


class TestStructuredFormats:
    def test_json_is_byte_identical(self, owner, checklist):
        first, content_type, filename = export_service.export_checklist(owner, checklist.id, "json", EXPORTED_AT)
        second, _, _ = export_service.export_checklist(owner, checklist.id, "json", EXPORTED_AT)
        assert first == second
        assert content_type == "application/json"
        assert filename == "Quarterly_Web_Audit_export.json"
        assert json.loads(first)["name"] == "Quarterly Web Audit"

    def test_yaml_matches_json_object(self, owner, checklist):
        body, content_type, filename = export_service.export_checklist(owner, checklist.id, "yaml", EXPORTED_AT)
        assert content_type == "application/yaml"
        assert filename.endswith("_export.yaml")
        assert yaml.safe_load(body) == json.loads(
            export_service.render_json(checklist, EXPORTED_AT))


class TestMarkdown:
    def _render(self, owner, checklist):
        body, content_type, filename = export_service.export_checklist(owner, checklist.id, "markdown", EXPORTED_AT)
        assert content_type == "text/markdown"
        assert filename == "Quarterly_Web_Audit_export.md"
        return body.decode("utf-8")

    def test_status_symbols(self, owner, checklist):
        md = self._render(owner, checklist)
        assert "- [x] **1. Enable HSTS** [High]" in md
        assert "- [ ] **2. Renew certificates** [Low]" in md
        assert "- [~] **1. Set CSP** [Medium]" in md
        assert "- [-] **2. Legacy endpoint** [Critical]" in md

    def test_sections_and_details(self, owner, checklist):
        md = self._render(owner, checklist)
        assert md.startswith("# Quarterly Web Audit\n")
        assert "### Transport" in md and "### Headers" in md
        assert md.index("### Transport") < md.index("### Headers")
        assert "  - **Reference:** [www.cisecurity.org](https://www.cisecurity.org/benchmarks)" in md
        assert "  - **Notes:** Preloaded" in md
        assert "  - **Completed by:** Olivia Owner on " in md
        assert "  - **Tags:** tls" in md
        assert "  - **Compliance:** ASVS 9.1" in md
        assert "- **Total Items:** 4" in md

    def test_footer(self, owner, checklist):
        md = self._render(owner, checklist)
        assert md.rstrip().endswith("*Generated by SecureListify on 2026-05-04 09:30 UTC*")

    def test_malformed_reference_url(self, owner, checklist, item_payload):
        checklist_service.update_checklist(owner, checklist.id, {
            "items": [item_payload("Broken link", reference_url="not a url")],
        })
        with pytest.raises(SerializationError) as exc:
            export_service.export_checklist(owner, checklist.id, "markdown", EXPORTED_AT)
        assert exc.value.fmt == "markdown"
        # JSON does not need the hostname
        export_service.export_checklist(owner, checklist.id, "json", EXPORTED_AT)


class TestPdf:
    def test_pdf_header_and_reproducible(self, owner, checklist):
        first, content_type, filename = export_service.export_checklist(owner, checklist.id, "pdf", EXPORTED_AT)
        second, _, _ = export_service.export_checklist(owner, checklist.id, "pdf", EXPORTED_AT)
        assert first.startswith(b"%PDF-")
        assert first == second
        assert content_type == "application/pdf"
        assert filename == "Quarterly_Web_Audit_export.pdf"

    def test_empty_checklist_renders(self, owner):
        empty = checklist_service.create_checklist(owner, {"name": "Empty", "system_type": "Custom"})
        body, _, _ = export_service.export_checklist(owner, empty.id, "pdf", EXPORTED_AT)
        assert body.startswith(b"%PDF-")

    def test_risk_colors(self):
        assert export_service.RISK_COLORS["Critical"] == export_service.RISK_COLORS["High"]
        assert {"Low", "Medium", "High", "Critical"} == set(export_service.RISK_COLORS)


class TestExportAccess:
    def test_outsider_forbidden(self, outsider, checklist):
        with pytest.raises(ForbiddenError):
            export_service.export_checklist(outsider, checklist.id, "json", EXPORTED_AT)

    def test_read_share_may_export(self, owner, collaborator, checklist):
        sharing_service.share_checklist(owner, checklist.id, {"email": collaborator.email, "permission": "read"})
        body, _, _ = export_service.export_checklist(collaborator, checklist.id, "markdown", EXPORTED_AT)
        assert body

    def test_unsupported_format(self, owner, checklist):
        with pytest.raises(ValidationError):
            export_service.export_checklist(owner, checklist.id, "docx", EXPORTED_AT)
