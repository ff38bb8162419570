"""
SecureListify
Blueprint registry.
"""

import io

from flask import request, send_file

from securelistify.core.exceptions import ValidationError


def json_body() -> dict:
    """Request JSON body; a missing or non-object body is a ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", details={"body": "expected object"})
    return data


def list_response(items, **to_dict_kwargs) -> dict:
    return {"items": [i.to_dict(**to_dict_kwargs) for i in items], "total": len(items)}


def download_response(body, content_type: str, filename: str):
    """Attachment response; non-ASCII names get an RFC 5987 ``filename*``."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return send_file(io.BytesIO(body), mimetype=content_type, as_attachment=True, download_name=filename)


def all_blueprints():
    from securelistify.blueprints.auth_bp import auth_bp
    from securelistify.blueprints.checklist_bp import checklist_bp
    from securelistify.blueprints.export_bp import export_bp
    from securelistify.blueprints.health_bp import health_bp
    from securelistify.blueprints.template_bp import template_bp
    from securelistify.blueprints.user_bp import user_bp

    return (auth_bp, user_bp, template_bp, checklist_bp, export_bp, health_bp)
