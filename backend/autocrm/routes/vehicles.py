# Overview: Flask API routes for vehicles; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_user, require_permission
from ..store import get_store
from ..validation import ValidationError

vehicles_bp = Blueprint("vehicles", __name__, url_prefix="/api/vehicles")


@vehicles_bp.get("")
@require_user
@require_permission("MANAGE_CLIENTS")
def list_vehicles():
    """
    Query params:
    - client_id: str (optional) - only this client's vehicles
    """
    store = get_store()
    client_id = request.args.get("client_id")
    if client_id:
        vehicles = store.get_vehicles_by_client_id(client_id)
    else:
        vehicles = store.list_vehicles()
    return jsonify({"items": [v.to_dict() for v in vehicles]}), 200


@vehicles_bp.post("")
@require_user
@require_permission("MANAGE_CLIENTS")
def create_vehicle():
    payload = request.get_json(silent=True) or {}
    try:
        vehicle = get_store().add_vehicle(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(vehicle.to_dict()), 201


@vehicles_bp.get("/<vehicle_id>")
@require_user
@require_permission("MANAGE_CLIENTS")
def get_vehicle(vehicle_id: str):
    vehicle = get_store().get_vehicle_by_id(vehicle_id)
    if vehicle is None:
        return jsonify({"error": "Vehicle not found"}), 404
    return jsonify(vehicle.to_dict()), 200


@vehicles_bp.patch("/<vehicle_id>")
@require_user
@require_permission("MANAGE_CLIENTS")
def update_vehicle(vehicle_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        vehicle = get_store().update_vehicle(vehicle_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if vehicle is None:
        return jsonify({"error": "Vehicle not found"}), 404
    return jsonify(vehicle.to_dict()), 200


@vehicles_bp.delete("/<vehicle_id>")
@require_user
@require_permission("MANAGE_CLIENTS")
def delete_vehicle(vehicle_id: str):
    if not get_store().delete_vehicle(vehicle_id):
        return jsonify({"error": "Vehicle not found"}), 404
    return jsonify({"ok": True}), 200
