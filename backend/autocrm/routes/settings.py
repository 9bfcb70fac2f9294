# Overview: Flask API routes for settings (branches, services, users); parses input and returns JSON responses.

"""
Settings routes.

- Listing branches, the service catalog and staff is open to any
  identified user (the booking dialog needs them).
- Branch and catalog changes require MANAGE_SETTINGS.
- Staff account changes require MANAGE_USERS.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_user, require_permission
from ..permissions import get_role_permissions
from ..store import get_store
from ..validation import ValidationError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/me")
@require_user
def current_user_profile():
    """The acting user and the permissions their role grants."""
    user = g.current_user
    return jsonify({
        **user.to_dict(),
        "permissions": get_role_permissions(user.role),
    }), 200


# =============================================================================
# BRANCHES
# =============================================================================

@settings_bp.get("/branches")
@require_user
def list_branches():
    return jsonify({"items": [b.to_dict() for b in get_store().list_branches()]}), 200


@settings_bp.post("/branches")
@require_user
@require_permission("MANAGE_SETTINGS")
def create_branch():
    payload = request.get_json(silent=True) or {}
    try:
        branch = get_store().add_branch(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(branch.to_dict()), 201


@settings_bp.patch("/branches/<branch_id>")
@require_user
@require_permission("MANAGE_SETTINGS")
def update_branch(branch_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        branch = get_store().update_branch(branch_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if branch is None:
        return jsonify({"error": "Branch not found"}), 404
    return jsonify(branch.to_dict()), 200


@settings_bp.delete("/branches/<branch_id>")
@require_user
@require_permission("MANAGE_SETTINGS")
def delete_branch(branch_id: str):
    if not get_store().delete_branch(branch_id):
        return jsonify({"error": "Branch not found"}), 404
    return jsonify({"ok": True}), 200


# =============================================================================
# SERVICE CATALOG
# =============================================================================

@settings_bp.get("/services")
@require_user
def list_services():
    """
    Query params:
    - category: str (optional)
    """
    services = get_store().list_services()
    category = request.args.get("category")
    if category:
        services = [s for s in services if s.category == category]
    return jsonify({"items": [s.to_dict() for s in services]}), 200


@settings_bp.post("/services")
@require_user
@require_permission("MANAGE_SETTINGS")
def create_service():
    payload = request.get_json(silent=True) or {}
    try:
        service = get_store().add_service(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(service.to_dict()), 201


@settings_bp.patch("/services/<service_id>")
@require_user
@require_permission("MANAGE_SETTINGS")
def update_service(service_id: str):
    """Catalog edits do not reprice existing work order lines."""
    payload = request.get_json(silent=True) or {}
    try:
        service = get_store().update_service(service_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if service is None:
        return jsonify({"error": "Service not found"}), 404
    return jsonify(service.to_dict()), 200


@settings_bp.delete("/services/<service_id>")
@require_user
@require_permission("MANAGE_SETTINGS")
def delete_service(service_id: str):
    if not get_store().delete_service(service_id):
        return jsonify({"error": "Service not found"}), 404
    return jsonify({"ok": True}), 200


# =============================================================================
# USERS
# =============================================================================

@settings_bp.get("/users")
@require_user
def list_users():
    """
    Query params:
    - branch_id: str (optional)
    """
    users = get_store().list_users()
    branch_id = request.args.get("branch_id")
    if branch_id:
        users = [u for u in users if u.branch_id == branch_id]
    return jsonify({"items": [u.to_dict() for u in users]}), 200


@settings_bp.post("/users")
@require_user
@require_permission("MANAGE_USERS")
def create_user():
    payload = request.get_json(silent=True) or {}
    try:
        user = get_store().add_user(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(user.to_dict()), 201


@settings_bp.patch("/users/<user_id>")
@require_user
@require_permission("MANAGE_USERS")
def update_user(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        user = get_store().update_user(user_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


@settings_bp.delete("/users/<user_id>")
@require_user
@require_permission("MANAGE_USERS")
def delete_user(user_id: str):
    if user_id == g.current_user.id:
        return jsonify({"error": "Cannot delete yourself"}), 400
    if not get_store().delete_user(user_id):
        return jsonify({"error": "User not found"}), 404
    return jsonify({"ok": True}), 200
