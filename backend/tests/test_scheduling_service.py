from datetime import datetime, timedelta

import pytest

from autocrm.services import scheduling_service


START = datetime(2024, 6, 1, 9, 0)


@pytest.mark.parametrize(
    "service_ids,hours",
    [
        (["srv-1", "srv-4"], 1),      # 50 min
        (["srv-2", "srv-3"], 2),      # 105 min
        (["srv-5"], 3),               # 180 min
        (["srv-1", "srv-missing"], 1),
        ([], 0),
    ],
)
def test_estimate_end_at_rounds_up_to_hours(store, service_ids, hours):
    assert scheduling_service.estimate_end_at(store, START, service_ids) == START + timedelta(hours=hours)


def test_assignable_users_exclude_owner(store):
    assert [u.id for u in scheduling_service.list_assignable_users(store, "branch-1")] == ["user-2", "user-3"]
    assert [u.id for u in scheduling_service.list_assignable_users(store, "branch-2")] == ["user-4"]


def test_appointments_for_day_sorted_by_start(store):
    day = store.get_appointment_by_id("apt-1").start_at.date()

    assert [a.id for a in scheduling_service.appointments_for_day(store, day)] == [
        "apt-1", "apt-6", "apt-2", "apt-3",
    ]
    assert [a.id for a in scheduling_service.appointments_for_day(store, day, "branch-1")] == [
        "apt-1", "apt-2", "apt-3",
    ]
    assert [a.id for a in scheduling_service.appointments_for_day(store, day + timedelta(days=1))] == [
        "apt-4", "apt-5",
    ]


def test_upcoming_skips_finished_appointments(store):
    now = store.get_appointment_by_id("apt-1").start_at
    store.update_appointment("apt-2", {"status": "cancelled"})
    store.update_appointment("apt-3", {"status": "done"})

    upcoming = scheduling_service.upcoming_appointments(store, now=now)

    assert [a.id for a in upcoming] == ["apt-1", "apt-6", "apt-4", "apt-5"]


def test_upcoming_limit(store):
    now = store.get_appointment_by_id("apt-1").start_at
    assert len(scheduling_service.upcoming_appointments(store, now=now, limit=2)) == 2


def test_upcoming_window_is_today_and_tomorrow(store):
    now = store.get_appointment_by_id("apt-1").start_at + timedelta(days=2)
    assert scheduling_service.upcoming_appointments(store, now=now) == []
