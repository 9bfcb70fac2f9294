# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

"""
Inventory routes.

- Any identified user may read parts and movements (needed to pick parts
  for a work order).
- Editing parts and recording movements requires MANAGE_INVENTORY.
- Stock is never written directly: it changes only through movements.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_user, require_permission
from ..services import inventory_service
from ..services.entity_store import NotFoundError
from ..store import get_store
from ..validation import ValidationError

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/parts")
@require_user
def list_parts():
    """
    Query params:
    - branch_id: str (optional) - return per-branch stock summary rows instead
    """
    store = get_store()
    branch_id = request.args.get("branch_id")
    if branch_id:
        return jsonify({"items": inventory_service.get_stock_summary(store, branch_id)}), 200
    return jsonify({"items": [p.to_dict() for p in store.list_part_items()]}), 200


@inventory_bp.post("/parts")
@require_user
@require_permission("MANAGE_INVENTORY")
def create_part():
    payload = request.get_json(silent=True) or {}
    try:
        part = get_store().add_part_item(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(part.to_dict()), 201


@inventory_bp.get("/parts/<part_id>")
@require_user
def get_part(part_id: str):
    part = get_store().get_part_by_id(part_id)
    if part is None:
        return jsonify({"error": "Part not found"}), 404
    return jsonify(part.to_dict()), 200


@inventory_bp.patch("/parts/<part_id>")
@require_user
@require_permission("MANAGE_INVENTORY")
def update_part(part_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        part = get_store().update_part_item(part_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if part is None:
        return jsonify({"error": "Part not found"}), 404
    return jsonify(part.to_dict()), 200


@inventory_bp.delete("/parts/<part_id>")
@require_user
@require_permission("MANAGE_INVENTORY")
def delete_part(part_id: str):
    if not get_store().delete_part_item(part_id):
        return jsonify({"error": "Part not found"}), 404
    return jsonify({"ok": True}), 200


@inventory_bp.get("/low-stock")
@require_user
def low_stock():
    branch_id = request.args.get("branch_id")
    if not branch_id:
        return jsonify({"error": "branch_id is required"}), 400

    parts = inventory_service.list_low_stock(get_store(), branch_id)
    return jsonify({
        "branch_id": branch_id,
        "items": [
            {**p.to_dict(), "stock": p.stock_at(branch_id), "min_qty": p.min_qty_at(branch_id)}
            for p in parts
        ],
    }), 200


@inventory_bp.get("/movements")
@require_user
def list_movements():
    """
    Query params (all optional):
    - branch_id, part_item_id, work_order_id
    """
    movements = inventory_service.list_movements(
        get_store(),
        branch_id=request.args.get("branch_id"),
        part_id=request.args.get("part_item_id"),
        work_order_id=request.args.get("work_order_id"),
    )
    return jsonify({"items": [m.to_dict() for m in movements]}), 200


@inventory_bp.post("/movements")
@require_user
@require_permission("MANAGE_INVENTORY")
def record_movement():
    """
    Record a stock movement and apply it to stock.

    Body: part_item_id, branch_id, type, qty (required);
    related_work_order_id, note (optional).

    Returns:
        201: the recorded movement and the part's new stock
        400: invalid input
        404: part not found
    """
    payload = request.get_json(silent=True) or {}
    missing = [k for k in ("part_item_id", "branch_id", "type", "qty") if payload.get(k) in (None, "")]
    if missing:
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

    store = get_store()
    try:
        movement = inventory_service.record_stock_movement(
            store,
            part_id=payload["part_item_id"],
            branch_id=payload["branch_id"],
            movement_type=payload["type"],
            qty=payload["qty"],
            related_work_order_id=payload.get("related_work_order_id"),
            note=payload.get("note") or "",
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to record inventory movement")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Stock movement %s %s x %d at %s by %s",
        movement.type,
        movement.part_item_id,
        movement.qty,
        movement.branch_id,
        g.current_user.id,
    )
    part = store.get_part_by_id(movement.part_item_id)
    return jsonify({
        "movement": movement.to_dict(),
        "stock": part.stock_at(movement.branch_id),
    }), 201
