# Overview: Service-layer operations for reporting; read-only aggregates over the store.

from __future__ import annotations

from datetime import datetime

from ..models import WORK_ORDER_STATUSES, Client, WorkOrder
from ..time_utils import day_bounds, utcnow
from .entity_store import EntityStore, NotFoundError
from .inventory_service import list_low_stock


def work_order_totals(store: EntityStore, work_order_id: str) -> dict:
    """Services, parts and grand total of one work order (price * qty per line)."""
    if store.get_work_order_by_id(work_order_id) is None:
        raise NotFoundError(f"Work order {work_order_id} not found")

    services_total = sum(line.amount for line in store.get_service_lines_for_work_order(work_order_id))
    parts_total = sum(line.amount for line in store.get_part_lines_for_work_order(work_order_id))
    return {
        "services_total": services_total,
        "parts_total": parts_total,
        "grand_total": services_total + parts_total,
    }


def dashboard_summary(store: EntityStore, branch_id: str, now: datetime | None = None) -> dict:
    """
    KPI cards of the branch dashboard.

    - appointments_today: today's appointments that are not cancelled
    - open_work_orders: work orders not closed or cancelled
    - low_stock_items: parts below their minimum at the branch
    - revenue: service line amounts of work orders with any payment
      (payment status other than "unpaid")

    "Today" is the UTC calendar day of now; the branch timezone is not applied.
    """
    start, end = day_bounds(now or utcnow())

    appointments_today = sum(
        1 for apt in store.list_appointments()
        if apt.branch_id == branch_id and start <= apt.start_at < end and apt.status != "cancelled"
    )

    branch_orders = [wo for wo in store.list_work_orders() if wo.branch_id == branch_id]
    open_work_orders = sum(1 for wo in branch_orders if wo.is_open)

    paid_ids = {wo.id for wo in branch_orders if wo.payment_status != "unpaid"}
    revenue = sum(
        line.amount for line in store.list_work_order_service_lines()
        if line.work_order_id in paid_ids
    )

    return {
        "branch_id": branch_id,
        "appointments_today": appointments_today,
        "open_work_orders": open_work_orders,
        "low_stock_items": len(list_low_stock(store, branch_id)),
        "revenue": revenue,
    }


def work_orders_by_status(store: EntityStore) -> dict[str, int]:
    counts = {status: 0 for status in WORK_ORDER_STATUSES}
    for wo in store.list_work_orders():
        counts[wo.status] = counts.get(wo.status, 0) + 1
    return counts


def top_services(store: EntityStore, limit: int = 5) -> list[dict]:
    """Catalog services ranked by total quantity sold on work order lines."""
    quantities: dict[str, int] = {}
    for line in store.list_work_order_service_lines():
        if store.get_service_by_id(line.service_id) is None:
            continue
        quantities[line.service_id] = quantities.get(line.service_id, 0) + line.qty

    ranked = sorted(quantities.items(), key=lambda item: item[1], reverse=True)[:limit]
    rows = []
    for service_id, qty in ranked:
        service = store.get_service_by_id(service_id)
        rows.append({"service_id": service_id, "name": service.name, "count": qty})
    return rows


def recent_work_orders(store: EntityStore, limit: int = 8) -> list[WorkOrder]:
    orders = [wo for wo in store.list_work_orders() if wo.status != "cancelled"]
    orders.sort(key=lambda wo: wo.created_at, reverse=True)
    return orders[:limit]


def search_clients(store: EntityStore, query: str | None) -> list[Client]:
    """
    Client list search box.

    Name, email and company name match case-insensitively; phone matches
    as a plain substring. An empty query returns every client.
    """
    clients = store.list_clients()
    if not query:
        return clients

    needle = query.lower()
    matches = []
    for client in clients:
        if (
            needle in (client.name or "").lower()
            or query in (client.phone or "")
            or needle in (client.email or "").lower()
            or needle in (client.company_name or "").lower()
        ):
            matches.append(client)
    return matches
