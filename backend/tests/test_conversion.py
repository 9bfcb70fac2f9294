"""
Appointment -> work order conversion tests.
"""

from datetime import timedelta

import pytest

from autocrm.services.entity_store import NotFoundError
from autocrm.validation import ValidationError


class TestConvertAppointment:

    def test_converts_booked_services_into_lines(self, store):
        appointment = store.get_appointment_by_id("apt-1")
        start_at, end_at = appointment.start_at, appointment.end_at

        wo = store.convert_appointment_to_work_order("apt-1")

        assert wo.number == "WO-2024-006"
        assert wo.status == "draft"
        assert wo.payment_status == "unpaid"
        assert (wo.branch_id, wo.client_id, wo.vehicle_id) == ("branch-1", "client-1", "veh-1")
        assert wo.planned_start_at == start_at
        assert wo.planned_end_at == end_at
        assert wo.assigned_user_id == "user-3"
        assert wo.notes == "Customer asks for synthetic oil"
        assert wo.appointment_id == "apt-1"

        lines = store.get_service_lines_for_work_order(wo.id)
        assert [(l.service_id, l.qty, l.price, l.duration_min) for l in lines] == [
            ("srv-1", 1, 2500, 30),
            ("srv-4", 1, 1500, 20),
        ]
        assert store.get_appointment_by_id("apt-1").status == "done"

    def test_unknown_appointment_changes_nothing(self, store):
        before = store.collection_sizes()
        with pytest.raises(NotFoundError):
            store.convert_appointment_to_work_order("apt-missing")
        assert store.collection_sizes() == before
        assert store.next_work_order_number == "WO-2024-006"

    def test_services_missing_from_catalog_are_skipped(self, store):
        apt = store.add_appointment({
            "branch_id": "branch-2",
            "client_id": "client-5",
            "vehicle_id": "veh-8",
            "service_ids": ["srv-missing", "srv-7"],
            "start_at": "2024-06-01T09:00:00Z",
            "end_at": "2024-06-01T10:00:00Z",
        })

        wo = store.convert_appointment_to_work_order(apt.id)

        lines = store.get_service_lines_for_work_order(wo.id)
        assert [l.service_id for l in lines] == ["srv-7"]

    def test_appointment_without_services(self, store):
        apt = store.add_appointment({
            "branch_id": "branch-1",
            "client_id": "client-4",
            "vehicle_id": "veh-6",
            "start_at": "2024-06-01T09:00:00Z",
            "end_at": "2024-06-01T09:00:00Z",
        })
        wo = store.convert_appointment_to_work_order(apt.id)
        assert store.get_service_lines_for_work_order(wo.id) == []
        assert wo.notes == ""

    def test_lines_keep_price_after_catalog_change(self, store):
        wo = store.convert_appointment_to_work_order("apt-1")
        store.update_service("srv-1", {"base_price": 4000})
        assert store.get_service_lines_for_work_order(wo.id)[0].price == 2500

    def test_failure_rolls_back_every_step(self, store, monkeypatch):
        before = store.collection_sizes()

        def fail_update(appointment_id, patch):
            raise RuntimeError("appointment update failed")

        monkeypatch.setattr(store, "update_appointment", fail_update)

        with pytest.raises(RuntimeError):
            store.convert_appointment_to_work_order("apt-1")

        assert store.collection_sizes() == before
        assert store.get_appointment_by_id("apt-1").status == "confirmed"
        assert [wo.appointment_id for wo in store.list_work_orders() if wo.appointment_id] == []
        # Allocated numbers are not reused after a rollback
        assert store.next_work_order_number == "WO-2024-007"

    def test_each_conversion_gets_a_new_number(self, store):
        first = store.convert_appointment_to_work_order("apt-1")
        second = store.convert_appointment_to_work_order("apt-2")
        assert (first.number, second.number) == ("WO-2024-006", "WO-2024-007")

    def test_rejected_window_patch_keeps_appointment_convertible(self, store):
        start_at = store.get_appointment_by_id("apt-1").start_at
        with pytest.raises(ValidationError):
            store.update_appointment("apt-1", {"end_at": start_at - timedelta(hours=1)})

        wo = store.convert_appointment_to_work_order("apt-1")
        assert wo.planned_start_at == start_at
        assert wo.planned_end_at >= wo.planned_start_at
