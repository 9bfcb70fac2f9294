from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import StoreRecord


WORK_ORDER_STATUSES = ("draft", "in_progress", "waiting_parts", "ready", "closed", "cancelled")
PAYMENT_STATUSES = ("unpaid", "partial", "paid")
PART_LINE_STATUSES = ("reserved", "consumed")

# Work orders in these states no longer count as open
CLOSED_WORK_ORDER_STATUSES = ("closed", "cancelled")


class WorkOrder(StoreRecord, db.Model):
    """
    The billable unit of work.

    number is generated once by the store (WO-<year>-<seq>) and is not
    writable afterwards. updated_at advances on every update.
    """
    __tablename__ = "work_orders"
    ID_PREFIX = "wo"

    branch_id = db.Column(db.String(64), nullable=False, index=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    vehicle_id = db.Column(db.String(64), nullable=False)

    number = db.Column(db.String(32), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="draft")
    payment_status = db.Column(db.String(16), nullable=False, default="unpaid")

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)
    planned_start_at = db.Column(db.DateTime, nullable=True)
    planned_end_at = db.Column(db.DateTime, nullable=True)

    assigned_user_id = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=False, default="")

    # Set when the work order was created from an appointment
    appointment_id = db.Column(db.String(64), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_WORK_ORDER_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "client_id": self.client_id,
            "vehicle_id": self.vehicle_id,
            "number": self.number,
            "status": self.status,
            "payment_status": self.payment_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "planned_start_at": to_utc_z(self.planned_start_at),
            "planned_end_at": to_utc_z(self.planned_end_at),
            "assigned_user_id": self.assigned_user_id,
            "notes": self.notes,
            "appointment_id": self.appointment_id,
        }


class WorkOrderServiceLine(StoreRecord, db.Model):
    __tablename__ = "work_order_service_lines"
    ID_PREFIX = "wosl"

    work_order_id = db.Column(db.String(64), nullable=False, index=True)
    service_id = db.Column(db.String(64), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=1)

    # Copied from the catalog at line creation
    price = db.Column(db.Integer, nullable=False, default=0)
    duration_min = db.Column(db.Integer, nullable=False, default=0)

    @property
    def amount(self) -> int:
        return self.price * self.qty

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "work_order_id": self.work_order_id,
            "service_id": self.service_id,
            "qty": self.qty,
            "price": self.price,
            "duration_min": self.duration_min,
        }


class WorkOrderPartLine(StoreRecord, db.Model):
    __tablename__ = "work_order_part_lines"
    ID_PREFIX = "wopl"

    work_order_id = db.Column(db.String(64), nullable=False, index=True)
    part_item_id = db.Column(db.String(64), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=1)

    # Copied from the part's sell price at line creation
    price = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="reserved")

    @property
    def amount(self) -> int:
        return self.price * self.qty

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "work_order_id": self.work_order_id,
            "part_item_id": self.part_item_id,
            "qty": self.qty,
            "price": self.price,
            "status": self.status,
        }
