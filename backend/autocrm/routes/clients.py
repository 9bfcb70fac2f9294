# Overview: Flask API routes for clients; parses input and returns JSON responses.

"""
Client routes.

- Reads and writes require MANAGE_CLIENTS.
- A client's detail view bundles its vehicles, work orders and appointments.
- Deleting a client does not delete anything that references it.
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_user, require_permission
from ..services import reporting_service
from ..store import get_store
from ..validation import ValidationError

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_user
@require_permission("MANAGE_CLIENTS")
def list_clients():
    """
    List clients.

    Query params:
    - q: str (optional) - search on name, email, company name and phone
    """
    query = request.args.get("q", "").strip()
    clients = reporting_service.search_clients(get_store(), query)
    return jsonify({"items": [c.to_dict() for c in clients]}), 200


@clients_bp.post("")
@require_user
@require_permission("MANAGE_CLIENTS")
def create_client():
    payload = request.get_json(silent=True) or {}
    try:
        client = get_store().add_client(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(client.to_dict()), 201


@clients_bp.get("/<client_id>")
@require_user
@require_permission("MANAGE_CLIENTS")
def get_client(client_id: str):
    store = get_store()
    client = store.get_client_by_id(client_id)
    if client is None:
        return jsonify({"error": "Client not found"}), 404

    return jsonify({
        **client.to_dict(),
        "vehicles": [v.to_dict() for v in store.get_vehicles_by_client_id(client_id)],
        "work_orders": [wo.to_dict() for wo in store.get_work_orders_by_client_id(client_id)],
        "appointments": [a.to_dict() for a in store.get_appointments_by_client_id(client_id)],
    }), 200


@clients_bp.patch("/<client_id>")
@require_user
@require_permission("MANAGE_CLIENTS")
def update_client(client_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        client = get_store().update_client(client_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if client is None:
        return jsonify({"error": "Client not found"}), 404
    return jsonify(client.to_dict()), 200


@clients_bp.delete("/<client_id>")
@require_user
@require_permission("MANAGE_CLIENTS")
def delete_client(client_id: str):
    if not get_store().delete_client(client_id):
        return jsonify({"error": "Client not found"}), 404
    return jsonify({"ok": True}), 200
