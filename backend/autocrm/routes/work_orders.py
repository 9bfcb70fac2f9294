# Overview: Flask API routes for work orders; parses input and returns JSON responses.

"""
Work order routes.

- Work order CRUD, service lines, and the part reservation lifecycle
  (reserve -> consume, or reserve -> release).
- All routes require MANAGE_WORK_ORDERS.
- The detail view includes lines and totals.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_user, require_permission
from ..services import inventory_service, reporting_service
from ..services.entity_store import NotFoundError
from ..store import get_store
from ..validation import ValidationError

work_orders_bp = Blueprint("work_orders", __name__, url_prefix="/api/work-orders")


def _work_order_detail(store, work_order) -> dict:
    return {
        **work_order.to_dict(),
        "service_lines": [line.to_dict() for line in store.get_service_lines_for_work_order(work_order.id)],
        "part_lines": [line.to_dict() for line in store.get_part_lines_for_work_order(work_order.id)],
        "totals": reporting_service.work_order_totals(store, work_order.id),
    }


def _line_belongs_to(line, work_order_id: str) -> bool:
    return line is not None and line.work_order_id == work_order_id


@work_orders_bp.get("")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def list_work_orders():
    """
    Query params:
    - status: str (optional)
    - branch_id: str (optional)
    - client_id: str (optional)
    """
    store = get_store()
    orders = store.list_work_orders()

    status = request.args.get("status")
    branch_id = request.args.get("branch_id")
    client_id = request.args.get("client_id")
    if status:
        orders = [wo for wo in orders if wo.status == status]
    if branch_id:
        orders = [wo for wo in orders if wo.branch_id == branch_id]
    if client_id:
        orders = [wo for wo in orders if wo.client_id == client_id]

    return jsonify({"items": [wo.to_dict() for wo in orders]}), 200


@work_orders_bp.post("")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def create_work_order():
    payload = request.get_json(silent=True) or {}
    store = get_store()
    try:
        work_order = store.add_work_order(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(_work_order_detail(store, work_order)), 201


@work_orders_bp.get("/<work_order_id>")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def get_work_order(work_order_id: str):
    store = get_store()
    work_order = store.get_work_order_by_id(work_order_id)
    if work_order is None:
        return jsonify({"error": "Work order not found"}), 404
    return jsonify(_work_order_detail(store, work_order)), 200


@work_orders_bp.patch("/<work_order_id>")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def update_work_order(work_order_id: str):
    payload = request.get_json(silent=True) or {}
    store = get_store()
    try:
        work_order = store.update_work_order(work_order_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if work_order is None:
        return jsonify({"error": "Work order not found"}), 404
    return jsonify(_work_order_detail(store, work_order)), 200


@work_orders_bp.delete("/<work_order_id>")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def delete_work_order(work_order_id: str):
    if not get_store().delete_work_order(work_order_id):
        return jsonify({"error": "Work order not found"}), 404
    return jsonify({"ok": True}), 200


# =============================================================================
# SERVICE LINES
# =============================================================================

@work_orders_bp.post("/<work_order_id>/service-lines")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def add_service_line(work_order_id: str):
    """
    Add a service to a work order.

    Body: service_id (required), qty, price, duration_min. Price and
    duration default to the catalog values.
    """
    store = get_store()
    if store.get_work_order_by_id(work_order_id) is None:
        return jsonify({"error": "Work order not found"}), 404

    payload = request.get_json(silent=True) or {}
    try:
        line = store.add_work_order_service_line({**payload, "work_order_id": work_order_id})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(line.to_dict()), 201


@work_orders_bp.delete("/<work_order_id>/service-lines/<line_id>")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def delete_service_line(work_order_id: str, line_id: str):
    store = get_store()
    lines = {line.id for line in store.get_service_lines_for_work_order(work_order_id)}
    if line_id not in lines:
        return jsonify({"error": "Service line not found"}), 404

    store.delete_work_order_service_line(line_id)
    return jsonify({"ok": True}), 200


# =============================================================================
# PART RESERVATIONS
# =============================================================================

@work_orders_bp.post("/<work_order_id>/parts")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def reserve_part(work_order_id: str):
    """
    Reserve parts for a work order.

    Body: part_item_id (required), qty (default 1).

    Returns:
        201: the new reserved part line
        400: invalid qty
        404: work order or part not found
    """
    payload = request.get_json(silent=True) or {}
    part_id = payload.get("part_item_id")
    if not part_id:
        return jsonify({"error": "part_item_id is required"}), 400

    try:
        line = inventory_service.reserve_part(
            get_store(),
            work_order_id=work_order_id,
            part_id=part_id,
            qty=payload.get("qty", 1),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to reserve part %s for work order %s", part_id, work_order_id)
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Reserved %d x %s for work order %s by %s",
        line.qty,
        part_id,
        work_order_id,
        g.current_user.id,
    )
    return jsonify(line.to_dict()), 201


@work_orders_bp.post("/<work_order_id>/parts/<line_id>/consume")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def consume_part(work_order_id: str, line_id: str):
    store = get_store()
    if not _line_belongs_to(store.get_part_line_by_id(line_id), work_order_id):
        return jsonify({"error": "Part line not found"}), 404

    try:
        line = inventory_service.consume_part(store, line_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to consume part line %s", line_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(line.to_dict()), 200


@work_orders_bp.delete("/<work_order_id>/parts/<line_id>")
@require_user
@require_permission("MANAGE_WORK_ORDERS")
def release_part(work_order_id: str, line_id: str):
    """Release a reserved part back to stock (consumed parts cannot be released)."""
    store = get_store()
    if not _line_belongs_to(store.get_part_line_by_id(line_id), work_order_id):
        return jsonify({"error": "Part line not found"}), 404

    try:
        movement = inventory_service.release_part(store, line_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to release part line %s", line_id)
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Released part line %s of work order %s", line_id, work_order_id)
    return jsonify({"ok": True, "movement": movement.to_dict()}), 200
