"""
User Blueprint.

  GET /api/v1/users/profile   — the authenticated caller
  GET /api/v1/users           — every account (admin only)
"""

from flask import Blueprint, g, jsonify

from securelistify.blueprints import list_response
from securelistify.middleware.jwt_auth import admin_required, login_required
from securelistify.services.user_service import list_users

user_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@user_bp.route("/profile", methods=["GET"])
@login_required
def profile():
    return jsonify(g.current_user.to_dict()), 200


@user_bp.route("", methods=["GET"])
@admin_required
def users():
    return jsonify(list_response(list_users())), 200
