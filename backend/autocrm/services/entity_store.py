# Overview: In-memory entity store; the only sanctioned way to read or mutate records.

from __future__ import annotations

import re
import secrets
import string
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, Optional

from ..models import (
    Appointment,
    Branch,
    Client,
    InventoryMovement,
    PartItem,
    Service,
    User,
    Vehicle,
    WorkOrder,
    WorkOrderPartLine,
    WorkOrderServiceLine,
)
from ..time_utils import utcnow
from ..validation import (
    APPOINTMENT_POLICY,
    BRANCH_POLICY,
    CLIENT_POLICY,
    MOVEMENT_POLICY,
    PART_ITEM_POLICY,
    PART_ITEM_UPDATE_POLICY,
    PART_LINE_POLICY,
    SERVICE_LINE_POLICY,
    SERVICE_POLICY,
    USER_POLICY,
    VEHICLE_POLICY,
    WORK_ORDER_POLICY,
    ModelValidationPolicy,
    ValidationError,
    check_time_window,
    coerce_int,
    validate_payload,
)
"""
Entity Store Semantics (authoritative)

Reads:
- list_* returns a fresh list in insertion order on every call.
- get_*_by_id returns the record or None; unknown ids never raise.
- Relationship filters (vehicles by client, lines by work order, ...) are
  plain queries with no side effects.

Writes:
- add_* validates the payload against the entity's patch policy, generates a
  prefixed id and any derived fields, and returns the new record.
- update_* validates the patch first (unknown or read-only fields raise
  ValidationError), then shallow-merges it. Unknown id: no-op, returns None.
- Appointment and work order time windows are checked against the merged
  record, so patching only one side cannot leave end before start.
- delete_* removes by id. Unknown id: no-op, returns False. Only work order
  deletion cascades (to its service and part lines); inventory movements
  already recorded are left alone.

Referential integrity:
- Not enforced. Callers pass ids that exist at the time of the call; ids
  that later dangle simply resolve to None.

Stock:
- update_part_stock is the only path that changes stock_by_branch after a
  part is created. Results clamp at zero.
- update_part_stock and add_inventory_movement are independent primitives.
  inventory_service.record_stock_movement pairs them in one transaction.

Transactions:
- Every public write runs inside atomic(). Nested atomic() blocks join the
  outermost one, which commits on success and rolls back on any exception.
"""


_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 9

_WORK_ORDER_NUMBER_RE = re.compile(r"^WO-(\d{4})-(\d+)$")

# start/end field pairs checked against the merged record on update
_TIME_WINDOWS = {
    Appointment: ("start_at", "end_at"),
    WorkOrder: ("planned_start_at", "planned_end_at"),
}


class NotFoundError(LookupError):
    """Raised when a workflow's required record does not exist."""
    pass


class EntityStore:
    """
    Holds every collection of the back office and exposes its operations.

    One instance per application (see create_app); tests build a fresh one
    per test. The work order counter belongs to the instance and is seeded
    one past the highest existing number when the store is constructed.
    """

    def __init__(self, session, *, number_year: int | None = None):
        self.session = session
        self._atomic_depth = 0
        self._number_year, self._next_work_order_seq = self._seed_work_order_counter(number_year)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator["EntityStore"]:
        """Group store operations into one unit: commit on exit, roll back on error."""
        self._atomic_depth += 1
        try:
            yield self
        except Exception:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                self.session.rollback()
            raise
        self._atomic_depth -= 1
        if self._atomic_depth == 0:
            self.session.commit()
        else:
            self.session.flush()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find(self, model, record_id):
        if not isinstance(record_id, str) or not record_id:
            return None
        return self.session.query(model).filter_by(id=record_id).first()

    def _list(self, model, **filters) -> list:
        return self.session.query(model).filter_by(**filters).order_by(model.seq).all()

    def _new_id(self, model) -> str:
        while True:
            suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))
            candidate = f"{model.ID_PREFIX}-{suffix}"
            if self._find(model, candidate) is None:
                return candidate

    def _insert(self, model, patch: dict, **derived):
        with self.atomic():
            record = model(id=self._new_id(model), **patch, **derived)
            self.session.add(record)
            self.session.flush()
        return record

    def _add(self, model, policy: ModelValidationPolicy, payload: dict | None, **derived):
        patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
        return self._insert(model, patch, **derived)

    def _update(self, model, policy: ModelValidationPolicy, record_id, patch: dict | None):
        cleaned = validate_payload(model=model, payload=patch, policy=policy, partial=True)
        record = self._find(model, record_id)
        if record is None:
            return None
        window = _TIME_WINDOWS.get(model)
        if window is not None:
            start_key, end_key = window
            check_time_window(
                cleaned.get(start_key, getattr(record, start_key)),
                cleaned.get(end_key, getattr(record, end_key)),
                start_key,
                end_key,
            )
        with self.atomic():
            for key, value in cleaned.items():
                setattr(record, key, value)
            if isinstance(record, WorkOrder):
                record.updated_at = self._advance_timestamp(record.updated_at)
        return record

    def _delete(self, model, record_id) -> bool:
        record = self._find(model, record_id)
        if record is None:
            return False
        with self.atomic():
            self.session.delete(record)
        return True

    @staticmethod
    def _advance_timestamp(previous: Optional[datetime]) -> datetime:
        # updated_at must strictly increase even when two updates land in the same tick
        now = utcnow()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    # ------------------------------------------------------------------
    # Work order numbering
    # ------------------------------------------------------------------

    def _seed_work_order_counter(self, number_year: int | None) -> tuple[int, int]:
        highest_seq = 0
        highest_year = None
        for (number,) in self.session.query(WorkOrder.number).all():
            match = _WORK_ORDER_NUMBER_RE.match(number or "")
            if not match:
                continue
            seq = int(match.group(2))
            if seq > highest_seq:
                highest_seq = seq
                highest_year = int(match.group(1))

        if number_year is None:
            number_year = highest_year if highest_year is not None else utcnow().year
        return number_year, highest_seq + 1

    def _allocate_work_order_number(self) -> str:
        seq = self._next_work_order_seq
        self._next_work_order_seq += 1
        return f"WO-{self._number_year}-{seq:03d}"

    @property
    def next_work_order_number(self) -> str:
        """The number the next created work order will receive (not reserved)."""
        return f"WO-{self._number_year}-{self._next_work_order_seq:03d}"

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def list_branches(self) -> list[Branch]:
        return self._list(Branch)

    def list_users(self) -> list[User]:
        return self._list(User)

    def list_services(self) -> list[Service]:
        return self._list(Service)

    def list_clients(self) -> list[Client]:
        return self._list(Client)

    def list_vehicles(self) -> list[Vehicle]:
        return self._list(Vehicle)

    def list_appointments(self) -> list[Appointment]:
        return self._list(Appointment)

    def list_work_orders(self) -> list[WorkOrder]:
        return self._list(WorkOrder)

    def list_work_order_service_lines(self) -> list[WorkOrderServiceLine]:
        return self._list(WorkOrderServiceLine)

    def list_work_order_part_lines(self) -> list[WorkOrderPartLine]:
        return self._list(WorkOrderPartLine)

    def list_part_items(self) -> list[PartItem]:
        return self._list(PartItem)

    def list_inventory_movements(self) -> list[InventoryMovement]:
        return self._list(InventoryMovement)

    def collection_sizes(self) -> dict[str, int]:
        models = {
            "branches": Branch,
            "users": User,
            "services": Service,
            "clients": Client,
            "vehicles": Vehicle,
            "appointments": Appointment,
            "work_orders": WorkOrder,
            "work_order_service_lines": WorkOrderServiceLine,
            "work_order_part_lines": WorkOrderPartLine,
            "part_items": PartItem,
            "inventory_movements": InventoryMovement,
        }
        return {name: self.session.query(model).count() for name, model in models.items()}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_client_by_id(self, client_id) -> Client | None:
        return self._find(Client, client_id)

    def get_vehicle_by_id(self, vehicle_id) -> Vehicle | None:
        return self._find(Vehicle, vehicle_id)

    def get_service_by_id(self, service_id) -> Service | None:
        return self._find(Service, service_id)

    def get_user_by_id(self, user_id) -> User | None:
        return self._find(User, user_id)

    def get_branch_by_id(self, branch_id) -> Branch | None:
        return self._find(Branch, branch_id)

    def get_part_by_id(self, part_id) -> PartItem | None:
        return self._find(PartItem, part_id)

    def get_appointment_by_id(self, appointment_id) -> Appointment | None:
        return self._find(Appointment, appointment_id)

    def get_work_order_by_id(self, work_order_id) -> WorkOrder | None:
        return self._find(WorkOrder, work_order_id)

    def get_part_line_by_id(self, line_id) -> WorkOrderPartLine | None:
        return self._find(WorkOrderPartLine, line_id)

    def get_vehicles_by_client_id(self, client_id) -> list[Vehicle]:
        return self._list(Vehicle, client_id=client_id)

    def get_work_orders_by_client_id(self, client_id) -> list[WorkOrder]:
        return self._list(WorkOrder, client_id=client_id)

    def get_appointments_by_client_id(self, client_id) -> list[Appointment]:
        return self._list(Appointment, client_id=client_id)

    def get_service_lines_for_work_order(self, work_order_id) -> list[WorkOrderServiceLine]:
        return self._list(WorkOrderServiceLine, work_order_id=work_order_id)

    def get_part_lines_for_work_order(self, work_order_id) -> list[WorkOrderPartLine]:
        return self._list(WorkOrderPartLine, work_order_id=work_order_id)

    # ------------------------------------------------------------------
    # Branches, users, services
    # ------------------------------------------------------------------

    def add_branch(self, payload: dict) -> Branch:
        return self._add(Branch, BRANCH_POLICY, payload)

    def update_branch(self, branch_id, patch: dict) -> Branch | None:
        return self._update(Branch, BRANCH_POLICY, branch_id, patch)

    def delete_branch(self, branch_id) -> bool:
        return self._delete(Branch, branch_id)

    def add_user(self, payload: dict) -> User:
        return self._add(User, USER_POLICY, payload)

    def update_user(self, user_id, patch: dict) -> User | None:
        return self._update(User, USER_POLICY, user_id, patch)

    def delete_user(self, user_id) -> bool:
        return self._delete(User, user_id)

    def add_service(self, payload: dict) -> Service:
        return self._add(Service, SERVICE_POLICY, payload)

    def update_service(self, service_id, patch: dict) -> Service | None:
        return self._update(Service, SERVICE_POLICY, service_id, patch)

    def delete_service(self, service_id) -> bool:
        return self._delete(Service, service_id)

    # ------------------------------------------------------------------
    # Clients and vehicles
    # ------------------------------------------------------------------

    def add_client(self, payload: dict) -> Client:
        return self._add(Client, CLIENT_POLICY, payload, created_at=utcnow())

    def update_client(self, client_id, patch: dict) -> Client | None:
        return self._update(Client, CLIENT_POLICY, client_id, patch)

    def delete_client(self, client_id) -> bool:
        return self._delete(Client, client_id)

    def add_vehicle(self, payload: dict) -> Vehicle:
        return self._add(Vehicle, VEHICLE_POLICY, payload)

    def update_vehicle(self, vehicle_id, patch: dict) -> Vehicle | None:
        return self._update(Vehicle, VEHICLE_POLICY, vehicle_id, patch)

    def delete_vehicle(self, vehicle_id) -> bool:
        return self._delete(Vehicle, vehicle_id)

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def add_appointment(self, payload: dict) -> Appointment:
        return self._add(Appointment, APPOINTMENT_POLICY, payload)

    def update_appointment(self, appointment_id, patch: dict) -> Appointment | None:
        return self._update(Appointment, APPOINTMENT_POLICY, appointment_id, patch)

    def delete_appointment(self, appointment_id) -> bool:
        return self._delete(Appointment, appointment_id)

    # ------------------------------------------------------------------
    # Work orders and their lines
    # ------------------------------------------------------------------

    def add_work_order(self, payload: dict) -> WorkOrder:
        """Create a work order; number, created_at and updated_at are generated."""
        patch = validate_payload(model=WorkOrder, payload=payload, policy=WORK_ORDER_POLICY, partial=False)
        now = utcnow()
        return self._insert(
            WorkOrder,
            patch,
            number=self._allocate_work_order_number(),
            created_at=now,
            updated_at=now,
        )

    def update_work_order(self, work_order_id, patch: dict) -> WorkOrder | None:
        return self._update(WorkOrder, WORK_ORDER_POLICY, work_order_id, patch)

    def delete_work_order(self, work_order_id) -> bool:
        """
        Delete a work order together with its service and part lines.

        Stock reserved or consumed by the part lines is not returned and
        the related inventory movements stay in the audit trail.
        """
        if not isinstance(work_order_id, str) or not work_order_id:
            return False
        work_order = self._find(WorkOrder, work_order_id)
        with self.atomic():
            for line in self.get_service_lines_for_work_order(work_order_id):
                self.session.delete(line)
            for line in self.get_part_lines_for_work_order(work_order_id):
                self.session.delete(line)
            if work_order is not None:
                self.session.delete(work_order)
        return work_order is not None

    def add_work_order_service_line(self, payload: dict) -> WorkOrderServiceLine:
        """
        Add a service line. price and duration_min default to the catalog
        values of the service at the time of this call.
        """
        patch = validate_payload(
            model=WorkOrderServiceLine, payload=payload, policy=SERVICE_LINE_POLICY, partial=False
        )
        if patch.get("price") is None or patch.get("duration_min") is None:
            service = self.get_service_by_id(patch["service_id"])
            if service is None:
                raise ValidationError("price and duration_min are required for a service outside the catalog")
            if patch.get("price") is None:
                patch["price"] = service.base_price
            if patch.get("duration_min") is None:
                patch["duration_min"] = service.default_duration_min
        patch.setdefault("qty", 1)
        return self._insert(WorkOrderServiceLine, patch)

    def update_work_order_service_line(self, line_id, patch: dict) -> WorkOrderServiceLine | None:
        return self._update(WorkOrderServiceLine, SERVICE_LINE_POLICY, line_id, patch)

    def delete_work_order_service_line(self, line_id) -> bool:
        return self._delete(WorkOrderServiceLine, line_id)

    def add_work_order_part_line(self, payload: dict) -> WorkOrderPartLine:
        """Add a part line; price defaults to the part's current sell price."""
        patch = validate_payload(
            model=WorkOrderPartLine, payload=payload, policy=PART_LINE_POLICY, partial=False
        )
        if patch.get("price") is None:
            part = self.get_part_by_id(patch["part_item_id"])
            if part is None:
                raise ValidationError("price is required for a part outside the catalog")
            patch["price"] = part.sell_price
        patch.setdefault("qty", 1)
        if patch.get("status") is None:
            patch["status"] = "reserved"
        return self._insert(WorkOrderPartLine, patch)

    def update_work_order_part_line(self, line_id, patch: dict) -> WorkOrderPartLine | None:
        return self._update(WorkOrderPartLine, PART_LINE_POLICY, line_id, patch)

    def delete_work_order_part_line(self, line_id) -> bool:
        return self._delete(WorkOrderPartLine, line_id)

    def consume_part_line(self, line_id) -> WorkOrderPartLine | None:
        """Mark a part line consumed. Does not look at its current status."""
        line = self._find(WorkOrderPartLine, line_id)
        if line is None:
            return None
        with self.atomic():
            line.status = "consumed"
        return line

    # ------------------------------------------------------------------
    # Parts and stock
    # ------------------------------------------------------------------

    def add_part_item(self, payload: dict) -> PartItem:
        return self._add(PartItem, PART_ITEM_POLICY, payload)

    def update_part_item(self, part_id, patch: dict) -> PartItem | None:
        return self._update(PartItem, PART_ITEM_UPDATE_POLICY, part_id, patch)

    def delete_part_item(self, part_id) -> bool:
        return self._delete(PartItem, part_id)

    def update_part_stock(self, part_id, branch_id: str, delta: int) -> PartItem | None:
        """
        Adjust one branch's stock by delta, never going below zero.

        No inventory movement is written here.
        """
        delta = coerce_int("delta", delta)
        part = self._find(PartItem, part_id)
        if part is None:
            return None
        with self.atomic():
            stock = dict(part.stock_by_branch or {})
            stock[branch_id] = max(0, int(stock.get(branch_id, 0)) + delta)
            # Reassign so the JSON column is flagged dirty
            part.stock_by_branch = stock
        return part

    def add_inventory_movement(self, payload: dict) -> InventoryMovement:
        """Append an audit record. Stock is not touched."""
        return self._add(InventoryMovement, MOVEMENT_POLICY, payload, created_at=utcnow())

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    def convert_appointment_to_work_order(self, appointment_id) -> WorkOrder:
        """
        Turn an appointment into a draft work order.

        - Copies branch, client, vehicle, planned window, assignee and notes.
        - One service line per appointment service still in the catalog,
          priced at the catalog's current base price (qty 1).
        - Marks the appointment done.

        Runs as one transaction: if any step fails, nothing is kept.
        Raises NotFoundError when the appointment does not exist.
        """
        appointment = self.get_appointment_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")

        with self.atomic():
            work_order = self.add_work_order({
                "branch_id": appointment.branch_id,
                "client_id": appointment.client_id,
                "vehicle_id": appointment.vehicle_id,
                "status": "draft",
                "payment_status": "unpaid",
                "planned_start_at": appointment.start_at,
                "planned_end_at": appointment.end_at,
                "assigned_user_id": appointment.assigned_user_id,
                "notes": appointment.notes or "",
                "appointment_id": appointment.id,
            })

            for service_id in list(appointment.service_ids or []):
                service = self.get_service_by_id(service_id)
                if service is None:
                    continue
                self.add_work_order_service_line({
                    "work_order_id": work_order.id,
                    "service_id": service.id,
                    "qty": 1,
                    "price": service.base_price,
                    "duration_min": service.default_duration_min,
                })

            self.update_appointment(appointment.id, {"status": "done"})

        return work_order
