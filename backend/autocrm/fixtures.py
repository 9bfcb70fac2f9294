# Overview: Seed dataset loaded into a fresh store at startup.

"""
Demo data for the back office: two branches, four staff, the service
catalog, eight clients with their vehicles, today's and tomorrow's
appointments, five work orders (WO-2024-001 .. WO-2024-005) with lines,
eight stocked parts and a short movement history.

Fixture ids are fixed and human-readable ("client-1", "wo-3", ...). Records
created at runtime get random ids from the store. Dates are relative to the
moment the fixtures are loaded so the dashboard always has "today" data.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import (
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
from .time_utils import start_of_day, utcnow


BRANCHES = [
    {
        "id": "branch-1",
        "name": "Central Service Station",
        "address": "15 Automobile St",
        "timezone": "Europe/Moscow",
        "working_hours": {"open": "08:00", "close": "20:00"},
    },
    {
        "id": "branch-2",
        "name": "South Branch",
        "address": "42 South Ave",
        "timezone": "Europe/Moscow",
        "working_hours": {"open": "09:00", "close": "19:00"},
    },
]

USERS = [
    {"id": "user-1", "name": "Oleg Vladimirov", "email": "oleg@autoservice.example",
     "phone": "+7 (999) 123-45-67", "role": "owner", "branch_id": "branch-1"},
    {"id": "user-2", "name": "Anna Petrova", "email": "anna@autoservice.example",
     "phone": "+7 (999) 234-56-78", "role": "manager", "branch_id": "branch-1"},
    {"id": "user-3", "name": "Sergey Ivanov", "email": "sergey@autoservice.example",
     "phone": "+7 (999) 345-67-89", "role": "staff", "branch_id": "branch-1"},
    {"id": "user-4", "name": "Mikhail Kozlov", "email": "mikhail@autoservice.example",
     "phone": "+7 (999) 456-78-90", "role": "staff", "branch_id": "branch-2"},
]

# (id, category, name, default_duration_min, base_price)
SERVICES = [
    ("srv-1", "sto", "Oil change", 30, 2500),
    ("srv-2", "sto", "Brake pad replacement", 60, 4500),
    ("srv-3", "sto", "Engine diagnostics", 45, 3000),
    ("srv-4", "sto", "Filter replacement", 20, 1500),
    ("srv-5", "sto", "Timing belt replacement", 180, 12000),
    ("srv-6", "wash", "Full wash", 40, 800),
    ("srv-7", "wash", "Express wash", 15, 400),
    ("srv-8", "wash", "Engine wash", 30, 1200),
    ("srv-9", "detailing", "Body polishing", 240, 15000),
    ("srv-10", "detailing", "Interior dry cleaning", 180, 8000),
    ("srv-11", "detailing", "Ceramic coating", 480, 35000),
    ("srv-12", "tires", "Seasonal tire change", 45, 2000),
    ("srv-13", "tires", "Wheel balancing", 30, 800),
    ("srv-14", "tires", "Puncture repair", 20, 500),
    ("srv-15", "tuning", "ECU chip tuning", 120, 25000),
    ("srv-16", "tuning", "Spoiler installation", 90, 8000),
]

# (id, type, name, phone, email, company_name, tags, notes, age_days)
CLIENTS = [
    ("client-1", "individual", "Andrey Borisov", "+7 (912) 345-67-89", "andrey.b@mail.example",
     None, ["VIP", "Regular"], "Prefers morning slots", 120),
    ("client-2", "company", "Autopark LLC", "+7 (495) 123-45-67", "fleet@autopark.example",
     "Autopark LLC", ["Corporate"], "Fleet maintenance contract", 200),
    ("client-3", "individual", "Elena Smirnova", "+7 (903) 456-78-90", "elena.s@mail.example",
     None, ["Regular"], "", 45),
    ("client-4", "individual", "Dmitry Nikolaev", "+7 (926) 567-89-01", "dmitry.n@mail.example",
     None, [], "First visit", 10),
    ("client-5", "company", "City Taxi", "+7 (495) 987-65-43", "taxi@city.example",
     "City Taxi", ["Corporate", "Taxi"], "Scheduled service every 10000 km", 180),
    ("client-6", "individual", "Maxim Orlov", "+7 (915) 234-56-78", "max.orlov@mail.example",
     None, ["VIP"], "Owns premium cars", 90),
    ("client-7", "individual", "Olga Fedorova", "+7 (909) 876-54-32", "olga.f@mail.example",
     None, [], "", 5),
    ("client-8", "individual", "Victor Gromov", "+7 (916) 111-22-33", "victor.g@mail.example",
     None, ["Regular"], "Books online", 60),
]

# (id, client_id, make, model, year, plate, vin, mileage)
VEHICLES = [
    ("veh-1", "client-1", "BMW", "X5", 2021, "A123BC77", "WBAPH5C55BA123456", 45000),
    ("veh-2", "client-1", "Mercedes", "E-Class", 2020, "B456AC77", "WDD2130451A123456", 62000),
    ("veh-3", "client-2", "Ford", "Transit", 2019, "C789EK77", "WF0XXXGCDX1234567", 120000),
    ("veh-4", "client-2", "Ford", "Transit", 2019, "C790EK77", "WF0XXXGCDX1234568", 115000),
    ("veh-5", "client-3", "Toyota", "Camry", 2022, "K111OO77", "4T1B11HK5NU123456", 28000),
    ("veh-6", "client-4", "Volkswagen", "Tiguan", 2020, "M222HH77", "WVGZZZ5NZLW123456", 55000),
    ("veh-7", "client-5", "Skoda", "Octavia", 2021, "T333AA77", "TMBLD45L5K1234567", 180000),
    ("veh-8", "client-5", "Skoda", "Octavia", 2021, "T334AA77", "TMBLD45L5K1234568", 175000),
    ("veh-9", "client-6", "Porsche", "911", 2023, "O777OO77", "WP0AB2A91PS123456", 8000),
    ("veh-10", "client-7", "Kia", "Rio", 2018, "P555PP77", "Z94CB41AAJR123456", 89000),
    ("veh-11", "client-8", "Hyundai", "Tucson", 2022, "X666XX77", "KMHJ381CGNU123456", 32000),
]

# (id, branch, client, vehicle, service_ids, day_offset, start_hour, end_hour, status, notes, user)
APPOINTMENTS = [
    ("apt-1", "branch-1", "client-1", "veh-1", ["srv-1", "srv-4"], 0, 9, 10, "confirmed",
     "Customer asks for synthetic oil", "user-3"),
    ("apt-2", "branch-1", "client-3", "veh-5", ["srv-6"], 0, 11, 12, "new", "", "user-3"),
    ("apt-3", "branch-1", "client-6", "veh-9", ["srv-9"], 0, 14, 18, "confirmed",
     "Premium polishing for the Porsche", "user-3"),
    ("apt-4", "branch-1", "client-4", "veh-6", ["srv-12", "srv-13"], 1, 10, 11.5, "new",
     "Seasonal change to winter tires", "user-3"),
    ("apt-5", "branch-1", "client-8", "veh-11", ["srv-2", "srv-3"], 1, 14, 16, "confirmed", "", "user-3"),
    ("apt-6", "branch-2", "client-5", "veh-7", ["srv-1", "srv-4"], 0, 9, 10, "in_progress",
     "Scheduled maintenance", "user-4"),
]

# (id, branch, client, vehicle, number, status, payment, created, updated, start, end, user, notes)
# Day offsets relative to now.
WORK_ORDERS = [
    ("wo-1", "branch-1", "client-2", "veh-3", "WO-2024-001", "in_progress", "unpaid",
     -2, 0, -1, 1, "user-3", "Full brake system repair"),
    ("wo-2", "branch-1", "client-1", "veh-2", "WO-2024-002", "waiting_parts", "partial",
     -5, -1, -3, 2, "user-3", "Waiting for timing belt parts"),
    ("wo-3", "branch-1", "client-5", "veh-8", "WO-2024-003", "ready", "unpaid",
     -3, 0, -2, -1, "user-3", "Ready for pickup, awaiting payment"),
    ("wo-4", "branch-1", "client-3", "veh-5", "WO-2024-004", "closed", "paid",
     -10, -7, -9, -8, "user-3", ""),
    ("wo-5", "branch-2", "client-7", "veh-10", "WO-2024-005", "draft", "unpaid",
     0, 0, 1, 1, "user-4", "Draft order"),
]

# (id, work_order_id, service_id, qty, price, duration_min)
SERVICE_LINES = [
    ("wosl-1", "wo-1", "srv-2", 1, 4500, 60),
    ("wosl-2", "wo-1", "srv-3", 1, 3000, 45),
    ("wosl-3", "wo-2", "srv-5", 1, 12000, 180),
    ("wosl-4", "wo-3", "srv-1", 1, 2500, 30),
    ("wosl-5", "wo-3", "srv-4", 1, 1500, 20),
    ("wosl-6", "wo-4", "srv-6", 1, 800, 40),
    ("wosl-7", "wo-4", "srv-10", 1, 8000, 180),
]

# (id, sku, name, category, unit, cost, sell, stock b1, stock b2, min b1, min b2)
PARTS = [
    ("part-1", "OIL-5W40-5L", "Engine oil 5W-40 5L", "Oils", "pcs", 2800, 3500, 15, 8, 10, 5),
    ("part-2", "FILT-OIL-001", "Universal oil filter", "Filters", "pcs", 350, 550, 25, 18, 15, 10),
    ("part-3", "FILT-AIR-001", "Universal air filter", "Filters", "pcs", 450, 700, 20, 12, 10, 8),
    ("part-4", "BRAKE-PAD-FR", "Front brake pads", "Brakes", "set", 2200, 3200, 8, 5, 6, 4),
    ("part-5", "BRAKE-PAD-RR", "Rear brake pads", "Brakes", "set", 1800, 2600, 6, 4, 5, 3),
    ("part-6", "BELT-GRM-001", "Timing belt", "Engine", "pcs", 3500, 5000, 3, 2, 4, 3),
    ("part-7", "COOLANT-5L", "Coolant 5L", "Fluids", "pcs", 800, 1200, 12, 8, 8, 5),
    ("part-8", "WIPER-SET", "Wiper blade set", "Body", "set", 600, 950, 10, 6, 5, 4),
]

# (id, work_order_id, part_item_id, qty, price, status)
PART_LINES = [
    ("wopl-1", "wo-1", "part-4", 1, 3200, "consumed"),
    ("wopl-2", "wo-2", "part-6", 1, 5000, "reserved"),
    ("wopl-3", "wo-3", "part-1", 1, 3500, "consumed"),
    ("wopl-4", "wo-3", "part-2", 1, 550, "consumed"),
]

# (id, branch, part, type, qty, work_order_id, age_days, note)
MOVEMENTS = [
    ("mov-1", "branch-1", "part-1", "in", 20, None, 30, "Supplier delivery"),
    ("mov-2", "branch-1", "part-4", "consume", 1, "wo-1", 1, "Consumed for work order WO-2024-001"),
    ("mov-3", "branch-1", "part-6", "reserve", 1, "wo-2", 4, "Reserved for work order WO-2024-002"),
    ("mov-4", "branch-1", "part-1", "consume", 1, "wo-3", 2, "Consumed for work order WO-2024-003"),
    ("mov-5", "branch-1", "part-2", "consume", 1, "wo-3", 2, "Consumed for work order WO-2024-003"),
]


def _hours(day: datetime, offset_days: int, hour: float) -> datetime:
    return day + timedelta(days=offset_days, minutes=int(hour * 60))


def build_fixture_records(now: datetime | None = None) -> list:
    """Instantiate every fixture record, dated relative to now."""
    now = now or utcnow()
    today = start_of_day(now)
    records: list = []

    records += [Branch(**row) for row in BRANCHES]
    records += [User(**row) for row in USERS]

    records += [
        Service(id=sid, category=cat, name=name, default_duration_min=dur, base_price=price)
        for sid, cat, name, dur, price in SERVICES
    ]

    for cid, ctype, name, phone, email, company, tags, notes, age in CLIENTS:
        records.append(Client(
            id=cid,
            type=ctype,
            name=name,
            phone=phone,
            email=email,
            company_name=company,
            tags=list(tags),
            notes=notes,
            created_at=now - timedelta(days=age),
        ))

    records += [
        Vehicle(id=vid, client_id=cid, make=make, model=model, year=year, plate=plate, vin=vin, mileage=mileage)
        for vid, cid, make, model, year, plate, vin, mileage in VEHICLES
    ]

    for aid, branch, client, vehicle, service_ids, day, start, end, status, notes, user in APPOINTMENTS:
        records.append(Appointment(
            id=aid,
            branch_id=branch,
            client_id=client,
            vehicle_id=vehicle,
            service_ids=list(service_ids),
            start_at=_hours(today, day, start),
            end_at=_hours(today, day, end),
            status=status,
            notes=notes,
            assigned_user_id=user,
        ))

    for (wid, branch, client, vehicle, number, status, payment,
         created, updated, start, end, user, notes) in WORK_ORDERS:
        records.append(WorkOrder(
            id=wid,
            branch_id=branch,
            client_id=client,
            vehicle_id=vehicle,
            number=number,
            status=status,
            payment_status=payment,
            created_at=now + timedelta(days=created),
            updated_at=now + timedelta(days=updated),
            planned_start_at=now + timedelta(days=start),
            planned_end_at=now + timedelta(days=end),
            assigned_user_id=user,
            notes=notes,
        ))

    records += [
        WorkOrderServiceLine(id=lid, work_order_id=wo, service_id=srv, qty=qty, price=price, duration_min=dur)
        for lid, wo, srv, qty, price, dur in SERVICE_LINES
    ]

    for pid, sku, name, category, unit, cost, sell, s1, s2, m1, m2 in PARTS:
        records.append(PartItem(
            id=pid,
            sku=sku,
            name=name,
            category=category,
            unit=unit,
            cost_price=cost,
            sell_price=sell,
            stock_by_branch={"branch-1": s1, "branch-2": s2},
            min_qty_by_branch={"branch-1": m1, "branch-2": m2},
        ))

    records += [
        WorkOrderPartLine(id=lid, work_order_id=wo, part_item_id=part, qty=qty, price=price, status=status)
        for lid, wo, part, qty, price, status in PART_LINES
    ]

    for mid, branch, part, mtype, qty, wo, age, note in MOVEMENTS:
        records.append(InventoryMovement(
            id=mid,
            branch_id=branch,
            part_item_id=part,
            type=mtype,
            qty=qty,
            related_work_order_id=wo,
            created_at=now - timedelta(days=age),
            note=note,
        ))

    return records


def load_fixtures(session, now: datetime | None = None) -> int:
    """Insert the fixture dataset and commit. Returns the number of records."""
    records = build_fixture_records(now)
    session.add_all(records)
    session.commit()
    return len(records)
