from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import StoreRecord


MOVEMENT_TYPES = ("in", "reserve", "consume", "return", "adjust")


class InventoryMovement(StoreRecord, db.Model):
    """
    Audit record of a stock change.

    Append-only. Writing a movement does not change stock by itself; see
    inventory_service.record_stock_movement for the combined operation.
    qty is the magnitude for in/reserve/consume/return and a signed delta
    for adjust.
    """
    __tablename__ = "inventory_movements"
    ID_PREFIX = "mov"

    branch_id = db.Column(db.String(64), nullable=False, index=True)
    part_item_id = db.Column(db.String(64), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    related_work_order_id = db.Column(db.String(64), nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False)
    note = db.Column(db.Text, nullable=False, default="")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "part_item_id": self.part_item_id,
            "type": self.type,
            "qty": self.qty,
            "related_work_order_id": self.related_work_order_id,
            "created_at": to_utc_z(self.created_at),
            "note": self.note,
        }
