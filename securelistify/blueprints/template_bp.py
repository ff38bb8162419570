"""
Template Blueprint — /api/v1/templates

  GET    /templates                    — visible templates (?system_type=)
  POST   /templates                    — create (caller becomes owner)
  GET    /templates/<id>               — one template with items
  PUT    /templates/<id>               — partial update (owner or admin)
  DELETE /templates/<id>               — delete (owner or admin)
  POST   /templates/import             — multipart upload, field "file" (.json/.yaml/.yml)
  GET    /templates/<id>/export/<fmt>  — json | yaml download, ids stripped
"""

from flask import Blueprint, g, jsonify, request

from securelistify.blueprints import download_response, json_body, list_response
from securelistify.core.exceptions import ValidationError
from securelistify.middleware.jwt_auth import login_required
from securelistify.services import template_service

template_bp = Blueprint("templates", __name__, url_prefix="/api/v1/templates")


@template_bp.route("", methods=["GET"])
@login_required
def list_templates():
    templates = template_service.list_templates(g.current_user, request.args.get("system_type"))
    return jsonify(list_response(templates, include_items=False)), 200


@template_bp.route("", methods=["POST"])
@login_required
def create_template():
    template = template_service.create_template(g.current_user, json_body())
    return jsonify(template.to_dict()), 201


@template_bp.route("/import", methods=["POST"])
@login_required
def import_template():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ValidationError("Please upload a file", details={"file": "required"})
    template = template_service.import_template(g.current_user, upload.filename, upload.read())
    return jsonify(template.to_dict()), 201


@template_bp.route("/<template_id>", methods=["GET"])
@login_required
def get_template(template_id):
    return jsonify(template_service.get_template(g.current_user, template_id).to_dict()), 200


@template_bp.route("/<template_id>", methods=["PUT"])
@login_required
def update_template(template_id):
    template = template_service.update_template(g.current_user, template_id, json_body())
    return jsonify(template.to_dict()), 200


@template_bp.route("/<template_id>", methods=["DELETE"])
@login_required
def delete_template(template_id):
    template_service.delete_template(g.current_user, template_id)
    return jsonify({"message": "Template deleted"}), 200


@template_bp.route("/<template_id>/export/<fmt>", methods=["GET"])
@login_required
def export_template(template_id, fmt):
    body, content_type, filename = template_service.export_template(g.current_user, template_id, fmt)
    return download_response(body, content_type, filename)
