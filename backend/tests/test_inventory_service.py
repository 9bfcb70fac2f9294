"""
Inventory service tests.

Verifies:
- Stock movements change stock by the signed amount for their type
- Reserve / consume / release lifecycle keeps stock and movements in step
- Low stock detection per branch
"""

import pytest

from autocrm.services import inventory_service
from autocrm.services.entity_store import NotFoundError
from autocrm.validation import ValidationError


def _stock(store, part_id, branch_id="branch-1"):
    return store.get_part_by_id(part_id).stock_at(branch_id)


# =============================================================================
# MOVEMENTS
# =============================================================================


class TestRecordStockMovement:

    @pytest.mark.parametrize(
        "movement_type,qty,expected",
        [
            ("in", 5, 20),
            ("return", 2, 17),
            ("reserve", 3, 12),
            ("consume", 1, 14),
            ("adjust", -4, 11),
            ("adjust", 4, 19),
        ],
    )
    def test_stock_changes_by_type(self, store, movement_type, qty, expected):
        movement = inventory_service.record_stock_movement(
            store,
            part_id="part-1",
            branch_id="branch-1",
            movement_type=movement_type,
            qty=qty,
        )
        assert _stock(store, "part-1") == expected
        assert movement.type == movement_type
        assert movement.qty == qty
        assert store.list_inventory_movements()[-1].id == movement.id

    def test_stock_lands_on_recorded_branch(self, store):
        movement = inventory_service.record_stock_movement(
            store, part_id="part-1", branch_id=" branch-1 ", movement_type="in", qty=5,
        )
        assert movement.branch_id == "branch-1"
        part = store.get_part_by_id("part-1")
        assert part.stock_at(movement.branch_id) == 20
        assert " branch-1 " not in part.stock_by_branch

    def test_stock_floor_applies(self, store):
        inventory_service.record_stock_movement(
            store, part_id="part-6", branch_id="branch-1", movement_type="adjust", qty=-50,
        )
        assert _stock(store, "part-6") == 0

    def test_unknown_part(self, store):
        with pytest.raises(NotFoundError):
            inventory_service.record_stock_movement(
                store, part_id="part-missing", branch_id="branch-1", movement_type="in", qty=1,
            )
        assert len(store.list_inventory_movements()) == 5

    def test_invalid_movement_writes_nothing(self, store):
        with pytest.raises(ValidationError):
            inventory_service.record_stock_movement(
                store, part_id="part-1", branch_id="branch-1", movement_type="teleport", qty=1,
            )
        assert _stock(store, "part-1") == 15
        assert len(store.list_inventory_movements()) == 5

    def test_filter_movements(self, store):
        assert [m.id for m in inventory_service.list_movements(store, work_order_id="wo-3")] == ["mov-4", "mov-5"]
        assert [m.id for m in inventory_service.list_movements(store, part_id="part-1")] == ["mov-1", "mov-4"]
        assert inventory_service.list_movements(store, branch_id="branch-2") == []


# =============================================================================
# RESERVATION LIFECYCLE
# =============================================================================


class TestReservationLifecycle:

    def test_reserve_takes_stock_and_records_movement(self, store):
        line = inventory_service.reserve_part(store, work_order_id="wo-1", part_id="part-1", qty=2)

        assert line.status == "reserved"
        assert line.price == 3500
        assert line.qty == 2
        assert _stock(store, "part-1") == 13

        movement = store.list_inventory_movements()[-1]
        assert (movement.type, movement.qty, movement.related_work_order_id) == ("reserve", 2, "wo-1")
        assert movement.branch_id == "branch-1"
        assert "WO-2024-001" in movement.note

    def test_reserve_uses_work_order_branch(self, store):
        inventory_service.reserve_part(store, work_order_id="wo-5", part_id="part-1", qty=1)
        assert _stock(store, "part-1", "branch-2") == 7
        assert _stock(store, "part-1", "branch-1") == 15

    @pytest.mark.parametrize("qty", [0, -1])
    def test_reserve_rejects_non_positive_qty(self, store, qty):
        with pytest.raises(ValidationError):
            inventory_service.reserve_part(store, work_order_id="wo-1", part_id="part-1", qty=qty)

    def test_reserve_unknown_references(self, store):
        with pytest.raises(NotFoundError):
            inventory_service.reserve_part(store, work_order_id="wo-missing", part_id="part-1", qty=1)
        with pytest.raises(NotFoundError):
            inventory_service.reserve_part(store, work_order_id="wo-1", part_id="part-missing", qty=1)
        assert len(store.list_work_order_part_lines()) == 4

    def test_consume_keeps_stock(self, store):
        line = inventory_service.reserve_part(store, work_order_id="wo-1", part_id="part-1", qty=2)

        consumed = inventory_service.consume_part(store, line.id)

        assert consumed.status == "consumed"
        assert _stock(store, "part-1") == 13
        movement = store.list_inventory_movements()[-1]
        assert (movement.type, movement.qty) == ("consume", 2)

    def test_consume_twice_records_once(self, store):
        inventory_service.consume_part(store, "wopl-2")
        inventory_service.consume_part(store, "wopl-2")
        consumes = [m for m in store.list_inventory_movements() if m.type == "consume"]
        assert len(consumes) == 4

    def test_consume_unknown_line(self, store):
        with pytest.raises(NotFoundError):
            inventory_service.consume_part(store, "wopl-missing")

    def test_release_returns_stock_and_drops_line(self, store):
        movement = inventory_service.release_part(store, "wopl-2")

        assert store.get_part_line_by_id("wopl-2") is None
        assert _stock(store, "part-6") == 4
        assert (movement.type, movement.qty, movement.related_work_order_id) == ("return", 1, "wo-2")

    def test_consumed_line_cannot_be_released(self, store):
        with pytest.raises(ValidationError):
            inventory_service.release_part(store, "wopl-1")
        assert store.get_part_line_by_id("wopl-1") is not None
        assert _stock(store, "part-4") == 8


# =============================================================================
# LOW STOCK
# =============================================================================


class TestLowStock:

    def test_low_stock_per_branch(self, store):
        assert [p.id for p in inventory_service.list_low_stock(store, "branch-1")] == ["part-6"]
        assert [p.id for p in inventory_service.list_low_stock(store, "branch-2")] == ["part-6"]

    def test_restock_clears_low_stock(self, store):
        inventory_service.record_stock_movement(
            store, part_id="part-6", branch_id="branch-1", movement_type="in", qty=1,
        )
        assert inventory_service.list_low_stock(store, "branch-1") == []

    def test_unknown_branch_has_no_minimums(self, store):
        assert inventory_service.list_low_stock(store, "branch-9") == []

    def test_stock_summary(self, store):
        rows = {row["part_item_id"]: row for row in inventory_service.get_stock_summary(store, "branch-1")}
        assert rows["part-6"]["stock"] == 3
        assert rows["part-6"]["min_qty"] == 4
        assert rows["part-6"]["is_low"] is True
        assert rows["part-1"]["is_low"] is False
