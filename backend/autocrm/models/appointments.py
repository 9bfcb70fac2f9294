from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import StoreRecord


APPOINTMENT_STATUSES = ("new", "confirmed", "in_progress", "no_show", "cancelled", "done")


class Appointment(StoreRecord, db.Model):
    """
    A scheduled visit.

    Overlapping appointments for the same user or bay are allowed; nothing
    here checks the calendar.
    """
    __tablename__ = "appointments"
    ID_PREFIX = "apt"

    branch_id = db.Column(db.String(64), nullable=False, index=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    vehicle_id = db.Column(db.String(64), nullable=False)

    # Ordered list of catalog service ids selected at booking time
    service_ids = db.Column(db.JSON, nullable=False, default=list)

    start_at = db.Column(db.DateTime, nullable=False, index=True)
    end_at = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="new")
    notes = db.Column(db.Text, nullable=False, default="")
    assigned_user_id = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "client_id": self.client_id,
            "vehicle_id": self.vehicle_id,
            "service_ids": list(self.service_ids or []),
            "start_at": to_utc_z(self.start_at),
            "end_at": to_utc_z(self.end_at),
            "status": self.status,
            "notes": self.notes,
            "assigned_user_id": self.assigned_user_id,
        }
