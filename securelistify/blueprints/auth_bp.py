"""
Auth Blueprint — account registration and login.

  POST /api/v1/auth/register   — name + email + password → access token
  POST /api/v1/auth/login      — email + password → access token
"""

from flask import Blueprint, jsonify

from securelistify.blueprints import json_body
from securelistify.services.jwt_service import token_response
from securelistify.services.user_service import authenticate_user, register_user

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.route("/register", methods=["POST"])
def register():
    """Body: { "name": "...", "email": "...", "password": "..." }"""
    user = register_user(json_body())
    return jsonify(token_response(user)), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """Body: { "email": "...", "password": "..." }"""
    data = json_body()
    user = authenticate_user(data.get("email"), data.get("password"))
    return jsonify(token_response(user)), 200
