# Overview: Service-layer helpers for the calendar and the booking dialog.

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable

from ..models import Appointment, User
from ..time_utils import day_bounds, start_of_day, utcnow
from .entity_store import EntityStore


# Appointments in these states are hidden from the "upcoming" list
FINISHED_APPOINTMENT_STATUSES = ("cancelled", "done")


def total_duration_min(store: EntityStore, service_ids: Iterable[str]) -> int:
    """Sum of catalog durations; ids missing from the catalog count as 0."""
    total = 0
    for service_id in service_ids or []:
        service = store.get_service_by_id(service_id)
        if service is not None:
            total += service.default_duration_min
    return total


def estimate_end_at(store: EntityStore, start_at: datetime, service_ids: Iterable[str]) -> datetime:
    """
    Default end of a booking: the start plus the total service duration
    rounded up to whole hours. No services means a zero-length slot.
    """
    minutes = total_duration_min(store, service_ids)
    return start_at + timedelta(hours=math.ceil(minutes / 60))


def list_assignable_users(store: EntityStore, branch_id: str) -> list[User]:
    """Users of a branch who can take appointments (everyone except owners)."""
    return [
        user for user in store.list_users()
        if user.branch_id == branch_id and user.role != "owner"
    ]


def appointments_for_day(
    store: EntityStore,
    day: date | datetime,
    branch_id: str | None = None,
) -> list[Appointment]:
    """Appointments starting on the given calendar day, earliest first."""
    start, end = day_bounds(day)
    matches = [
        apt for apt in store.list_appointments()
        if start <= apt.start_at < end and (branch_id is None or apt.branch_id == branch_id)
    ]
    return sorted(matches, key=lambda apt: apt.start_at)


def upcoming_appointments(
    store: EntityStore,
    now: datetime | None = None,
    limit: int = 8,
) -> list[Appointment]:
    """Today's and tomorrow's appointments that are still to happen (UTC calendar days)."""
    today = start_of_day(now or utcnow())
    window_end = today + timedelta(days=2)
    matches = [
        apt for apt in store.list_appointments()
        if today <= apt.start_at < window_end and apt.status not in FINISHED_APPOINTMENT_STATUSES
    ]
    matches.sort(key=lambda apt: apt.start_at)
    return matches[:limit]
