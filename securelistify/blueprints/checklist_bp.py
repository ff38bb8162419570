"""
Checklist Blueprint — /api/v1/checklists

  GET    /checklists                          — owned + shared, newest first
  POST   /checklists                          — create (optionally from base_template_id)
  GET    /checklists/<id>                     — read (owner or any share)
  PUT    /checklists/<id>                     — name/description/system_type/items (write)
  DELETE /checklists/<id>                     — owner only
  PUT    /checklists/<id>/items/<item_id>     — status and/or notes (write)
  PUT    /checklists/<id>/reorder             — {"items": [item ids]} (write)
  POST   /checklists/<id>/share               — {"email", "permission"} (owner)
  DELETE /checklists/<id>/share/<user_id>     — revoke (owner)

Mutations answer with the full checklist, the authoritative post-update state.
"""

from flask import Blueprint, g, jsonify

from securelistify.blueprints import json_body, list_response
from securelistify.middleware.jwt_auth import login_required
from securelistify.services import checklist_service, sharing_service

checklist_bp = Blueprint("checklists", __name__, url_prefix="/api/v1/checklists")


@checklist_bp.route("", methods=["GET"])
@login_required
def list_checklists():
    checklists = checklist_service.list_checklists(g.current_user)
    return jsonify(list_response(checklists, include_items=False)), 200


@checklist_bp.route("", methods=["POST"])
@login_required
def create_checklist():
    checklist = checklist_service.create_checklist(g.current_user, json_body())
    return jsonify(checklist.to_dict()), 201


@checklist_bp.route("/<checklist_id>", methods=["GET"])
@login_required
def get_checklist(checklist_id):
    return jsonify(checklist_service.get_checklist(g.current_user, checklist_id).to_dict()), 200


@checklist_bp.route("/<checklist_id>", methods=["PUT"])
@login_required
def update_checklist(checklist_id):
    checklist = checklist_service.update_checklist(g.current_user, checklist_id, json_body())
    return jsonify(checklist.to_dict()), 200


@checklist_bp.route("/<checklist_id>", methods=["DELETE"])
@login_required
def delete_checklist(checklist_id):
    checklist_service.delete_checklist(g.current_user, checklist_id)
    return jsonify({"message": "Checklist deleted"}), 200


@checklist_bp.route("/<checklist_id>/items/<item_id>", methods=["PUT"])
@login_required
def update_item(checklist_id, item_id):
    checklist = checklist_service.update_item(g.current_user, checklist_id, item_id, json_body())
    return jsonify(checklist.to_dict()), 200


@checklist_bp.route("/<checklist_id>/reorder", methods=["PUT"])
@login_required
def reorder_items(checklist_id):
    data = json_body()
    checklist = checklist_service.reorder_items(g.current_user, checklist_id, data.get("items"))
    return jsonify(checklist.to_dict()), 200


@checklist_bp.route("/<checklist_id>/share", methods=["POST"])
@login_required
def share_checklist(checklist_id):
    checklist = sharing_service.share_checklist(g.current_user, checklist_id, json_body())
    return jsonify(checklist.to_dict()), 200


@checklist_bp.route("/<checklist_id>/share/<int:user_id>", methods=["DELETE"])
@login_required
def unshare_checklist(checklist_id, user_id):
    checklist = sharing_service.unshare_checklist(g.current_user, checklist_id, user_id)
    return jsonify(checklist.to_dict()), 200
