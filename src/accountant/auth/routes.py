"""
Authentication Routes - username/password sessions (Flask-Login)

Flows:
1. Login: username + password
2. Signup: username, full name, email, password twice
3. Logout: standard Flask-Login
"""

from flask import jsonify, request
from flask_login import current_user, login_user, logout_user, login_required

from accountant.auth import bp
from accountant.auth import utils
from accountant.decorators import admin_required
from accountant.exceptions import ValidationError


def _payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")
    return payload


@bp.route("/login", methods=["POST"])
def login():
    payload = _payload()
    user = utils.authenticate(payload.get("username"), payload.get("password"))
    login_user(user, remember=bool(payload.get("remember")))
    return jsonify({
        "success": True,
        "message": "Login successful",
        "user": user.to_dict(),
    }), 200


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out"}), 200


@bp.route("/signup", methods=["POST"])
def signup():
    user = utils.create_user(_payload())
    return jsonify({
        "success": True,
        "message": "Account created successfully",
        "user": user.to_dict(),
    }), 201


@bp.route("/me", methods=["GET"])
@login_required
def me():
    if not current_user.is_authenticated:
        return jsonify({"success": True, "user": None}), 200
    return jsonify({"success": True, "user": current_user.to_dict()}), 200


@bp.route("", methods=["GET"])
@login_required
def list_users():
    return jsonify({
        "success": True,
        "users": [user.to_dict() for user in utils.list_users()],
    }), 200


@bp.route("/<int:user_id>", methods=["PUT"])
@login_required
def update_user(user_id):
    user = utils.update_user(user_id, _payload())
    return jsonify({
        "success": True,
        "message": "User updated successfully",
        "user": user.to_dict(),
    }), 200


@bp.route("/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    utils.delete_user(user_id)
    return jsonify({"success": True, "message": "User deleted successfully"}), 200
