# Overview: Flask API routes for appointments; parses input and returns JSON responses.

"""
Appointment routes.

Calendar reads, booking, and the appointment -> work order conversion.
All routes require MANAGE_APPOINTMENTS.
"""
from datetime import date

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_user, require_permission
from ..services import scheduling_service
from ..services.entity_store import NotFoundError
from ..store import get_store
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError

appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


@appointments_bp.get("")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def list_appointments():
    """
    List appointments.

    Query params:
    - day: YYYY-MM-DD (optional) - only appointments starting that day, earliest first
    - branch_id: str (optional) - with day, restrict to one branch
    """
    store = get_store()
    day = request.args.get("day")
    branch_id = request.args.get("branch_id")

    if day:
        try:
            parsed_day = date.fromisoformat(day)
        except ValueError:
            return jsonify({"error": "day must be YYYY-MM-DD"}), 400
        appointments = scheduling_service.appointments_for_day(store, parsed_day, branch_id)
    else:
        appointments = store.list_appointments()
        if branch_id:
            appointments = [a for a in appointments if a.branch_id == branch_id]

    return jsonify({"items": [a.to_dict() for a in appointments]}), 200


@appointments_bp.get("/upcoming")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def upcoming_appointments():
    limit = request.args.get("limit", 8, type=int)
    if limit < 0:
        return jsonify({"error": "limit must be >= 0"}), 400
    appointments = scheduling_service.upcoming_appointments(get_store(), limit=limit)
    return jsonify({"items": [a.to_dict() for a in appointments]}), 200


@appointments_bp.get("/assignable-users")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def assignable_users():
    branch_id = request.args.get("branch_id")
    if not branch_id:
        return jsonify({"error": "branch_id is required"}), 400
    users = scheduling_service.list_assignable_users(get_store(), branch_id)
    return jsonify({"items": [u.to_dict() for u in users]}), 200


@appointments_bp.post("")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def create_appointment():
    """
    Book an appointment.

    When end_at is omitted it is estimated from start_at and the selected
    services (total duration rounded up to whole hours).
    """
    payload = request.get_json(silent=True) or {}
    store = get_store()

    try:
        if payload.get("end_at") in (None, "") and payload.get("start_at"):
            try:
                start_at = parse_iso_datetime(str(payload["start_at"]))
            except ValueError:
                raise ValidationError("start_at must be an ISO-8601 datetime")
            end_at = scheduling_service.estimate_end_at(store, start_at, payload.get("service_ids") or [])
            payload = {**payload, "end_at": end_at}

        appointment = store.add_appointment(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(appointment.to_dict()), 201


@appointments_bp.get("/<appointment_id>")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def get_appointment(appointment_id: str):
    appointment = get_store().get_appointment_by_id(appointment_id)
    if appointment is None:
        return jsonify({"error": "Appointment not found"}), 404
    return jsonify(appointment.to_dict()), 200


@appointments_bp.patch("/<appointment_id>")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def update_appointment(appointment_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        appointment = get_store().update_appointment(appointment_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if appointment is None:
        return jsonify({"error": "Appointment not found"}), 404
    return jsonify(appointment.to_dict()), 200


@appointments_bp.delete("/<appointment_id>")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def delete_appointment(appointment_id: str):
    if not get_store().delete_appointment(appointment_id):
        return jsonify({"error": "Appointment not found"}), 404
    return jsonify({"ok": True}), 200


@appointments_bp.post("/<appointment_id>/convert")
@require_user
@require_permission("MANAGE_APPOINTMENTS")
def convert_appointment(appointment_id: str):
    """
    Turn an appointment into a draft work order.

    Returns:
        201: the new work order
        404: appointment not found
        500: server error (nothing was written)
    """
    store = get_store()
    try:
        work_order = store.convert_appointment_to_work_order(appointment_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to convert appointment %s", appointment_id)
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Appointment %s converted to work order %s by %s",
        appointment_id,
        work_order.number,
        g.current_user.id,
    )
    return jsonify({
        **work_order.to_dict(),
        "service_lines": [line.to_dict() for line in store.get_service_lines_for_work_order(work_order.id)],
    }), 201
