# Overview: Service-layer operations for inventory; pairs stock changes with their audit records.

from __future__ import annotations

from ..models import InventoryMovement, PartItem, WorkOrderPartLine
from ..validation import ValidationError, coerce_int
from .entity_store import EntityStore, NotFoundError
"""
Inventory Invariants (authoritative)

Stock model:
- Stock is a mutable per-branch quantity on PartItem.stock_by_branch.
- Quantities never go below zero; decrements clamp at zero.

Movement semantics (qty is always the magnitude except for adjust):
- in       stock += qty   (supplier delivery)
- return   stock += qty   (reserved part given back)
- reserve  stock -= qty   (part set aside for a work order)
- consume  no change when following a reservation; stock -= qty otherwise
- adjust   stock += qty   (qty is signed; corrections and shrink)

Reservation lifecycle:
- reserve_part: new part line in "reserved", stock decremented, "reserve" movement.
- consume_part: line -> "consumed", "consume" movement, stock untouched
  (already taken at reservation).
- release_part: reserved line removed, stock restored, "return" movement.

Each function here is a single transaction (EntityStore.atomic).
"""


_STOCK_SIGN = {
    "in": 1,
    "return": 1,
    "reserve": -1,
    "consume": -1,
    "adjust": 1,
}


def stock_delta_for(movement_type: str, qty: int) -> int:
    """Signed stock change a movement of this type represents."""
    if movement_type not in _STOCK_SIGN:
        raise ValidationError(f"Unknown movement type: {movement_type}")
    return _STOCK_SIGN[movement_type] * qty


def record_stock_movement(
    store: EntityStore,
    *,
    part_id: str,
    branch_id: str,
    movement_type: str,
    qty: int,
    related_work_order_id: str | None = None,
    note: str = "",
) -> InventoryMovement:
    """
    Adjust stock and append the matching movement in one transaction.

    This is the paired form of update_part_stock + add_inventory_movement.
    """
    qty = coerce_int("qty", qty)
    if store.get_part_by_id(part_id) is None:
        raise NotFoundError(f"Part {part_id} not found")

    with store.atomic():
        movement = store.add_inventory_movement({
            "branch_id": branch_id,
            "part_item_id": part_id,
            "type": movement_type,
            "qty": qty,
            "related_work_order_id": related_work_order_id,
            "note": note,
        })
        store.update_part_stock(
            movement.part_item_id, movement.branch_id, stock_delta_for(movement.type, movement.qty)
        )
    return movement


def reserve_part(
    store: EntityStore,
    *,
    work_order_id: str,
    part_id: str,
    qty: int,
    note: str | None = None,
) -> WorkOrderPartLine:
    """
    Reserve qty units of a part for a work order at the part's sell price.

    Stock is taken from the work order's branch.
    """
    qty = coerce_int("qty", qty)
    if qty < 1:
        raise ValidationError("qty must be >= 1")

    work_order = store.get_work_order_by_id(work_order_id)
    if work_order is None:
        raise NotFoundError(f"Work order {work_order_id} not found")
    part = store.get_part_by_id(part_id)
    if part is None:
        raise NotFoundError(f"Part {part_id} not found")

    with store.atomic():
        line = store.add_work_order_part_line({
            "work_order_id": work_order.id,
            "part_item_id": part.id,
            "qty": qty,
            "price": part.sell_price,
            "status": "reserved",
        })
        record_stock_movement(
            store,
            part_id=part.id,
            branch_id=work_order.branch_id,
            movement_type="reserve",
            qty=qty,
            related_work_order_id=work_order.id,
            note=note if note is not None else f"Reserved for work order {work_order.number}",
        )
    return line


def consume_part(store: EntityStore, part_line_id: str) -> WorkOrderPartLine:
    """Mark a reserved part line consumed and log the consumption."""
    line = store.get_part_line_by_id(part_line_id)
    if line is None:
        raise NotFoundError(f"Part line {part_line_id} not found")
    if line.status == "consumed":
        return line

    work_order = store.get_work_order_by_id(line.work_order_id)
    if work_order is None:
        raise NotFoundError(f"Work order {line.work_order_id} not found")

    with store.atomic():
        store.consume_part_line(line.id)
        store.add_inventory_movement({
            "branch_id": work_order.branch_id,
            "part_item_id": line.part_item_id,
            "type": "consume",
            "qty": line.qty,
            "related_work_order_id": work_order.id,
            "note": f"Consumed for work order {work_order.number}",
        })
    return line


def release_part(store: EntityStore, part_line_id: str) -> InventoryMovement:
    """Give a reserved part back to stock and drop the line."""
    line = store.get_part_line_by_id(part_line_id)
    if line is None:
        raise NotFoundError(f"Part line {part_line_id} not found")
    if line.status != "reserved":
        raise ValidationError("Only reserved part lines can be released")

    work_order = store.get_work_order_by_id(line.work_order_id)
    if work_order is None:
        raise NotFoundError(f"Work order {line.work_order_id} not found")

    with store.atomic():
        movement = record_stock_movement(
            store,
            part_id=line.part_item_id,
            branch_id=work_order.branch_id,
            movement_type="return",
            qty=line.qty,
            related_work_order_id=work_order.id,
            note=f"Released from work order {work_order.number}",
        )
        store.delete_work_order_part_line(line.id)
    return movement


def list_low_stock(store: EntityStore, branch_id: str) -> list[PartItem]:
    """Parts whose stock at the branch is below its minimum."""
    return [part for part in store.list_part_items() if part.is_low_stock(branch_id)]


def get_stock_summary(store: EntityStore, branch_id: str) -> list[dict]:
    """One row per part for the inventory screen of a branch."""
    rows = []
    for part in store.list_part_items():
        rows.append({
            "part_item_id": part.id,
            "sku": part.sku,
            "name": part.name,
            "unit": part.unit,
            "stock": part.stock_at(branch_id),
            "min_qty": part.min_qty_at(branch_id),
            "is_low": part.is_low_stock(branch_id),
        })
    return rows


def list_movements(
    store: EntityStore,
    *,
    branch_id: str | None = None,
    part_id: str | None = None,
    work_order_id: str | None = None,
) -> list[InventoryMovement]:
    movements = store.list_inventory_movements()
    if branch_id is not None:
        movements = [m for m in movements if m.branch_id == branch_id]
    if part_id is not None:
        movements = [m for m in movements if m.part_item_id == part_id]
    if work_order_id is not None:
        movements = [m for m in movements if m.related_work_order_id == work_order_id]
    return movements
