from __future__ import annotations
from datetime import datetime, timezone
from autocrm.time_utils import parse_iso_datetime

from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import JSON, Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .models import (
    APPOINTMENT_STATUSES,
    CLIENT_TYPES,
    MOVEMENT_TYPES,
    PART_LINE_STATUSES,
    PAYMENT_STATUSES,
    SERVICE_CATEGORIES,
    USER_ROLES,
    WORK_ORDER_STATUSES,
)


# Upper bound for any single price or cost, in whole currency units
MAX_PRICE = 99_999_999


class ValidationError(ValueError):
    """400-level input problem: unknown field, wrong type, bad enum value."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    The patch type of one entity.

    - writable_fields: what callers may set on create or update. Anything else
      in a payload is rejected, including read-only columns such as id,
      number or created_at.
    - required_on_create: fields that must be present when adding a record.
    - choices: enumerated fields and their allowed values.
    - rules: extra business checks run on the cleaned patch.
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)
    rules: Callable[[dict], None] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; never accept it as a quantity or price
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, JSON):
        if not isinstance(value, (list, dict)):
            raise ValidationError(f"{col.key} must be a list or an object")
        # Copy so later mutation by the caller cannot leak into the store
        return list(value) if isinstance(value, list) else dict(value)

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict | None,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes a create payload or an update patch.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    Returns a cleaned dict holding only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable and k in policy.required_on_create:
            if val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        allowed = policy.choices.get(k)
        if allowed is not None and val not in allowed:
            raise ValidationError(f"{k} must be one of: {', '.join(allowed)}")

        patch[k] = val

    if policy.rules is not None:
        policy.rules(patch)

    return patch


# ---------------------------------------------------------------------------
# Business rules that column metadata alone does not capture
# ---------------------------------------------------------------------------

def _require_non_negative(patch: dict, *keys: str, upper: int | None = None) -> None:
    for key in keys:
        value = patch.get(key)
        if value is None:
            continue
        if value < 0:
            raise ValidationError(f"{key} must be >= 0")
        if upper is not None and value > upper:
            raise ValidationError(f"{key} cannot exceed {upper}")


def _require_string_list(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        value = patch[key]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{key} must be a list of strings")


def _require_branch_quantity_map(patch: dict, key: str) -> None:
    if key not in patch or patch[key] is None:
        return
    value = patch[key]
    if not isinstance(value, dict):
        raise ValidationError(f"{key} must be an object keyed by branch id")
    cleaned = {}
    for branch_id, qty in value.items():
        qty = coerce_int(f"{key}.{branch_id}", qty)
        if qty < 0:
            raise ValidationError(f"{key}.{branch_id} must be >= 0")
        cleaned[str(branch_id)] = qty
    patch[key] = cleaned


def enforce_rules_branch(patch: dict) -> None:
    hours = patch.get("working_hours")
    if hours is None:
        return
    if not isinstance(hours, dict) or set(hours) - {"open", "close"}:
        raise ValidationError("working_hours must be an object with open and close")
    for key in ("open", "close"):
        value = hours.get(key)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"working_hours.{key} must be a HH:MM string")


def enforce_rules_service(patch: dict) -> None:
    _require_non_negative(patch, "base_price", upper=MAX_PRICE)
    _require_non_negative(patch, "default_duration_min")


def enforce_rules_client(patch: dict) -> None:
    _require_string_list(patch, "tags")


def enforce_rules_vehicle(patch: dict) -> None:
    _require_non_negative(patch, "mileage", "year")


def check_time_window(start, end, start_key: str, end_key: str) -> None:
    if start is not None and end is not None and end < start:
        raise ValidationError(f"{end_key} must not be before {start_key}")


def enforce_rules_appointment(patch: dict) -> None:
    _require_string_list(patch, "service_ids")
    check_time_window(patch.get("start_at"), patch.get("end_at"), "start_at", "end_at")


def enforce_rules_work_order(patch: dict) -> None:
    check_time_window(
        patch.get("planned_start_at"), patch.get("planned_end_at"), "planned_start_at", "planned_end_at"
    )


def enforce_rules_line(patch: dict) -> None:
    if "qty" in patch and patch["qty"] is not None and patch["qty"] < 1:
        raise ValidationError("qty must be >= 1")
    _require_non_negative(patch, "price", upper=MAX_PRICE)
    _require_non_negative(patch, "duration_min")


def enforce_rules_part_item(patch: dict) -> None:
    _require_non_negative(patch, "cost_price", "sell_price", upper=MAX_PRICE)
    _require_branch_quantity_map(patch, "stock_by_branch")
    _require_branch_quantity_map(patch, "min_qty_by_branch")


def enforce_rules_movement(patch: dict) -> None:
    qty = patch.get("qty")
    if qty is None:
        return
    if patch.get("type") == "adjust":
        if qty == 0:
            raise ValidationError("qty must be non-zero for adjust")
    elif qty < 1:
        raise ValidationError("qty must be >= 1")


# ---------------------------------------------------------------------------
# Per-entity patch policies
# ---------------------------------------------------------------------------

BRANCH_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "address", "timezone", "working_hours"}),
    required_on_create=frozenset({"name"}),
    rules=enforce_rules_branch,
)

USER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "email", "phone", "role", "branch_id", "avatar"}),
    required_on_create=frozenset({"name", "role", "branch_id"}),
    choices={"role": USER_ROLES},
)

SERVICE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"category", "name", "default_duration_min", "base_price"}),
    required_on_create=frozenset({"category", "name"}),
    choices={"category": SERVICE_CATEGORIES},
    rules=enforce_rules_service,
)

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"type", "name", "phone", "email", "company_name", "tags", "notes"}),
    required_on_create=frozenset({"name"}),
    choices={"type": CLIENT_TYPES},
    rules=enforce_rules_client,
)

VEHICLE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"client_id", "make", "model", "year", "plate", "vin", "mileage"}),
    required_on_create=frozenset({"client_id", "make", "model"}),
    rules=enforce_rules_vehicle,
)

APPOINTMENT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "branch_id",
        "client_id",
        "vehicle_id",
        "service_ids",
        "start_at",
        "end_at",
        "status",
        "notes",
        "assigned_user_id",
    }),
    required_on_create=frozenset({"branch_id", "client_id", "vehicle_id", "start_at", "end_at"}),
    choices={"status": APPOINTMENT_STATUSES},
    rules=enforce_rules_appointment,
)

WORK_ORDER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "branch_id",
        "client_id",
        "vehicle_id",
        "status",
        "payment_status",
        "planned_start_at",
        "planned_end_at",
        "assigned_user_id",
        "notes",
        "appointment_id",
    }),
    required_on_create=frozenset({"branch_id", "client_id", "vehicle_id"}),
    choices={"status": WORK_ORDER_STATUSES, "payment_status": PAYMENT_STATUSES},
    rules=enforce_rules_work_order,
)

SERVICE_LINE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"work_order_id", "service_id", "qty", "price", "duration_min"}),
    required_on_create=frozenset({"work_order_id", "service_id"}),
    rules=enforce_rules_line,
)

PART_LINE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"work_order_id", "part_item_id", "qty", "price", "status"}),
    required_on_create=frozenset({"work_order_id", "part_item_id"}),
    choices={"status": PART_LINE_STATUSES},
    rules=enforce_rules_line,
)

# stock_by_branch is writable on create only; EntityStore.update_part_item
# rejects it so that stock changes go through update_part_stock.
PART_ITEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "sku",
        "name",
        "category",
        "unit",
        "cost_price",
        "sell_price",
        "stock_by_branch",
        "min_qty_by_branch",
    }),
    required_on_create=frozenset({"sku", "name"}),
    rules=enforce_rules_part_item,
)

PART_ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PART_ITEM_POLICY.writable_fields - {"stock_by_branch"},
    rules=enforce_rules_part_item,
)

MOVEMENT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"branch_id", "part_item_id", "type", "qty", "related_work_order_id", "note"}),
    required_on_create=frozenset({"branch_id", "part_item_id", "type", "qty"}),
    choices={"type": MOVEMENT_TYPES},
    rules=enforce_rules_movement,
)
