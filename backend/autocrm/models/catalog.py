from __future__ import annotations

from ..extensions import db
from .base import StoreRecord


SERVICE_CATEGORIES = ("sto", "wash", "detailing", "tires", "tuning")


class Service(StoreRecord, db.Model):
    """
    Catalog entry for a bookable service.

    Prices on work order lines are copied from base_price when the line is
    created; editing the catalog never rewrites existing lines.
    """
    __tablename__ = "services"
    ID_PREFIX = "srv"

    category = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    default_duration_min = db.Column(db.Integer, nullable=False, default=0)
    base_price = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "name": self.name,
            "default_duration_min": self.default_duration_min,
            "base_price": self.base_price,
        }


class PartItem(StoreRecord, db.Model):
    """
    Inventory catalog entry with per-branch stock.

    stock_by_branch / min_qty_by_branch are maps keyed by branch id. A branch
    missing from the map has zero stock (or no minimum). The stock map is only
    changed through EntityStore.update_part_stock, which clamps at zero.
    """
    __tablename__ = "part_items"
    ID_PREFIX = "part"

    sku = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False, default="")
    unit = db.Column(db.String(32), nullable=False, default="pcs")
    cost_price = db.Column(db.Integer, nullable=False, default=0)
    sell_price = db.Column(db.Integer, nullable=False, default=0)

    stock_by_branch = db.Column(db.JSON, nullable=False, default=dict)
    min_qty_by_branch = db.Column(db.JSON, nullable=False, default=dict)

    def stock_at(self, branch_id: str) -> int:
        return int((self.stock_by_branch or {}).get(branch_id, 0))

    def min_qty_at(self, branch_id: str) -> int:
        return int((self.min_qty_by_branch or {}).get(branch_id, 0))

    def is_low_stock(self, branch_id: str) -> bool:
        return self.stock_at(branch_id) < self.min_qty_at(branch_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "cost_price": self.cost_price,
            "sell_price": self.sell_price,
            "stock_by_branch": dict(self.stock_by_branch or {}),
            "min_qty_by_branch": dict(self.min_qty_by_branch or {}),
        }
