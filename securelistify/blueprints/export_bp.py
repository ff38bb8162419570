"""
Export Blueprint — checklist downloads.

  GET /api/v1/export/<id>/<fmt>    fmt: json | yaml | markdown | pdf

Responds with Content-Disposition: attachment; filename=<Name>_export.<ext>
"""

from flask import Blueprint, g

from securelistify.blueprints import download_response
from securelistify.middleware.jwt_auth import login_required
from securelistify.services.export_service import export_checklist

export_bp = Blueprint("export", __name__, url_prefix="/api/v1/export")


@export_bp.route("/<checklist_id>/<fmt>", methods=["GET"])
@login_required
def export(checklist_id, fmt):
    body, content_type, filename = export_checklist(g.current_user, checklist_id, fmt)
    return download_response(body, content_type, filename)
