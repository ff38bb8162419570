"""
Checklist, template and export API tests — full request/response cycle
through the Flask test client with real bearer tokens.
"""

import io
import json
from urllib.parse import quote

import pytest


@pytest.fixture()
def api(client, auth_headers):
    """api(user).get/post/put/delete(path, **kwargs) with the user's token."""
    class _Caller:
        def __init__(self, user):
            self.headers = auth_headers(user)

        def __getattr__(self, method):
            def _call(path, **kwargs):
                return getattr(client, method)(f"/api/v1{path}", headers=self.headers, **kwargs)
            return _call
    return _Caller


@pytest.fixture()
def audit(api, owner, linux_template):
    res = api(owner).post("/checklists", json={
        "name": "My Audit",
        "system_type": "Linux Server",
        "base_template_id": linux_template.id,
    })
    assert res.status_code == 201
    return res.get_json()


class TestChecklistApi:
    def test_create_from_template(self, audit):
        assert audit["progress"] == {
            "not_started": 2, "in_progress": 0, "done": 0, "not_applicable": 0, "total": 2,
        }
        assert [i["order"] for i in audit["items"]] == [0, 1]
        assert audit["base_template"]["name"] == "Linux Server Hardening"
        assert audit["created_by"]["name"] == "Olivia Owner"

    def test_create_validation_error_body(self, api, owner):
        res = api(owner).post("/checklists", json={"name": "No type"})
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert body["details"] == {"system_type": "required"}

    def test_create_with_non_string_template_id(self, api, owner):
        res = api(owner).post("/checklists", json={
            "name": "X", "system_type": "Linux Server", "base_template_id": {"a": 1},
        })
        assert res.status_code == 400
        assert res.get_json()["details"] == {"base_template_id": "expected string"}

    def test_create_with_missing_template(self, api, owner):
        res = api(owner).post("/checklists", json={
            "name": "X", "system_type": "Custom", "base_template_id": "missing",
        })
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_update_item_returns_full_checklist(self, api, owner, audit):
        item = audit["items"][1]
        res = api(owner).put(f"/checklists/{audit['id']}/items/{item['id']}", json={"status": "Done"})
        assert res.status_code == 200
        body = res.get_json()
        assert body["progress"]["done"] == 1
        done = next(i for i in body["items"] if i["id"] == item["id"])
        assert done["completed_by"]["id"] == owner.id
        assert done["completed_at"] is not None
        assert body["last_updated_by"]["id"] == owner.id

    def test_reorder(self, api, owner, audit):
        ids = [i["id"] for i in audit["items"]]
        res = api(owner).put(f"/checklists/{audit['id']}/reorder", json={"items": list(reversed(ids))})
        assert res.status_code == 200
        assert [i["id"] for i in res.get_json()["items"]] == list(reversed(ids))

    def test_reorder_unknown_id(self, api, owner, audit):
        res = api(owner).put(f"/checklists/{audit['id']}/reorder", json={"items": ["nope"]})
        assert res.status_code == 400
        after = api(owner).get(f"/checklists/{audit['id']}").get_json()
        assert [i["order"] for i in after["items"]] == [0, 1]

    def test_update_meta(self, api, owner, audit):
        res = api(owner).put(f"/checklists/{audit['id']}", json={"name": "Renamed", "description": "d"})
        assert res.status_code == 200
        assert res.get_json()["name"] == "Renamed"

    def test_list(self, api, owner, audit):
        body = api(owner).get("/checklists").get_json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == audit["id"]
        assert "items" not in body["items"][0]

    def test_outsider_is_forbidden(self, api, outsider, audit):
        caller = api(outsider)
        item_id = audit["items"][0]["id"]
        assert caller.get(f"/checklists/{audit['id']}").status_code == 403
        assert caller.put(f"/checklists/{audit['id']}/items/{item_id}", json={"status": "Done"}).status_code == 403
        assert caller.get(f"/export/{audit['id']}/json").status_code == 403
        assert caller.delete(f"/checklists/{audit['id']}").status_code == 403

    def test_unknown_checklist(self, api, owner):
        assert api(owner).get("/checklists/does-not-exist").status_code == 404

    def test_delete(self, api, owner, audit):
        assert api(owner).delete(f"/checklists/{audit['id']}").status_code == 200
        assert api(owner).get(f"/checklists/{audit['id']}").status_code == 404

    def test_non_object_body(self, api, owner, audit):
        res = api(owner).put(f"/checklists/{audit['id']}", json=["not", "an", "object"])
        assert res.status_code == 400


class TestSharingApi:
    def test_share_read_then_write(self, api, owner, collaborator, audit):
        url = f"/checklists/{audit['id']}/share"
        res = api(owner).post(url, json={"email": collaborator.email, "permission": "read"})
        assert res.status_code == 200
        assert res.get_json()["shared_with"] == [{
            "user": {"id": collaborator.id, "name": "Carl Collaborator", "email": collaborator.email},
            "permission": "read",
        }]

        item_id = audit["items"][0]["id"]
        carl = api(collaborator)
        assert carl.get(f"/checklists/{audit['id']}").status_code == 200
        assert carl.put(f"/checklists/{audit['id']}/items/{item_id}", json={"status": "Done"}).status_code == 403

        res = api(owner).post(url, json={"email": collaborator.email, "permission": "write"})
        assert len(res.get_json()["shared_with"]) == 1
        assert carl.put(f"/checklists/{audit['id']}/items/{item_id}", json={"status": "Done"}).status_code == 200

    def test_share_unknown_email(self, api, owner, audit):
        res = api(owner).post(f"/checklists/{audit['id']}/share",
                              json={"email": "ghost@example.com", "permission": "read"})
        assert res.status_code == 404

    def test_unshare(self, api, owner, collaborator, audit):
        api(owner).post(f"/checklists/{audit['id']}/share",
                        json={"email": collaborator.email, "permission": "write"})
        res = api(owner).delete(f"/checklists/{audit['id']}/share/{collaborator.id}")
        assert res.status_code == 200
        assert res.get_json()["shared_with"] == []
        assert api(collaborator).get(f"/checklists/{audit['id']}").status_code == 403


class TestTemplateApi:
    def test_list_and_filter(self, api, owner, linux_template):
        body = api(owner).get("/templates", query_string={"system_type": "Linux Server"}).get_json()
        assert body["total"] == 1
        assert body["items"][0]["item_count"] == 2
        assert api(owner).get("/templates", query_string={"system_type": "Database"}).get_json()["total"] == 0

    def test_create_duplicate_name(self, api, owner, linux_template):
        res = api(owner).post("/templates", json={
            "name": "Linux Server Hardening", "description": "dup", "system_type": "Linux Server",
        })
        assert res.status_code == 409

    def test_import_upload(self, api, outsider, item_payload):
        document = {
            "name": "Uploaded", "description": "via multipart", "system_type": "Kubernetes Cluster",
            "items": [item_payload("Enable RBAC", "High", "Access")],
        }
        res = api(outsider).post("/templates/import", data={
            "file": (io.BytesIO(json.dumps(document).encode()), "k8s.json"),
        }, content_type="multipart/form-data")
        assert res.status_code == 201
        assert res.get_json()["items"][0]["title"] == "Enable RBAC"

    def test_import_rejects_extension(self, api, owner):
        res = api(owner).post("/templates/import", data={
            "file": (io.BytesIO(b"name: x"), "template.txt"),
        }, content_type="multipart/form-data")
        assert res.status_code == 400

    def test_import_requires_file(self, api, owner):
        res = api(owner).post("/templates/import", data={}, content_type="multipart/form-data")
        assert res.status_code == 400

    def test_export_download(self, api, owner, linux_template):
        res = api(owner).get(f"/templates/{linux_template.id}/export/yaml")
        assert res.status_code == 200
        assert res.mimetype == "application/yaml"
        assert res.headers["Content-Disposition"] == "attachment; filename=Linux_Server_Hardening.yaml"

    def test_update_forbidden_for_non_owner(self, api, outsider, linux_template):
        res = api(outsider).put(f"/templates/{linux_template.id}", json={"description": "x"})
        assert res.status_code == 403

    def test_admin_deletes(self, api, admin, linux_template):
        assert api(admin).delete(f"/templates/{linux_template.id}").status_code == 200


class TestExportApi:
    @pytest.mark.parametrize("fmt, mimetype, ext", [
        ("json", "application/json", "json"),
        ("yaml", "application/yaml", "yaml"),
        ("markdown", "text/markdown", "md"),
        ("pdf", "application/pdf", "pdf"),
    ])
    def test_download(self, api, owner, audit, fmt, mimetype, ext):
        res = api(owner).get(f"/export/{audit['id']}/{fmt}")
        assert res.status_code == 200
        assert res.mimetype == mimetype
        assert res.headers["Content-Disposition"] == f"attachment; filename=My_Audit_export.{ext}"
        assert res.data

    def test_non_ascii_name_is_header_safe(self, api, owner, audit):
        api(owner).put(f"/checklists/{audit['id']}", json={"name": "审计 清单"})
        res = api(owner).get(f"/export/{audit['id']}/markdown")
        assert res.status_code == 200
        disposition = res.headers["Content-Disposition"]
        disposition.encode("latin-1")
        assert disposition.startswith("attachment; ")
        assert f"filename*=UTF-8''{quote('审计_清单_export.md')}" in disposition

    def test_unknown_format(self, api, owner, audit):
        assert api(owner).get(f"/export/{audit['id']}/docx").status_code == 400

    def test_serialization_failure_is_500(self, api, owner, audit, item_payload):
        api(owner).put(f"/checklists/{audit['id']}", json={
            "items": [item_payload("Broken", reference_url="::::")],
        })
        res = api(owner).get(f"/export/{audit['id']}/markdown")
        assert res.status_code == 500
        assert res.get_json()["code"] == "ERR_SERIALIZATION"
        # the checklist itself is unaffected
        assert api(owner).get(f"/checklists/{audit['id']}").status_code == 200
