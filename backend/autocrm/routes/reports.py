from flask import Blueprint, jsonify, request

from ..decorators import require_user, require_permission
from ..services import reporting_service
from ..store import get_store


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_user
@require_permission("VIEW_REPORTS")
def dashboard():
    branch_id = request.args.get("branch_id")
    if not branch_id:
        return jsonify({"error": "branch_id is required"}), 400

    store = get_store()
    summary = reporting_service.dashboard_summary(store, branch_id)
    recent = reporting_service.recent_work_orders(store)
    return jsonify({
        **summary,
        "recent_work_orders": [wo.to_dict() for wo in recent],
    }), 200


@reports_bp.get("/work-orders")
@require_user
@require_permission("VIEW_REPORTS")
def work_orders_by_status():
    return jsonify({"by_status": reporting_service.work_orders_by_status(get_store())}), 200


@reports_bp.get("/top-services")
@require_user
@require_permission("VIEW_REPORTS")
def top_services():
    limit = request.args.get("limit", 5, type=int)
    if limit < 0:
        return jsonify({"error": "limit must be >= 0"}), 400
    return jsonify({"items": reporting_service.top_services(get_store(), limit=limit)}), 200
