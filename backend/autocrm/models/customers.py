from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import StoreRecord


CLIENT_TYPES = ("individual", "company")


class Client(StoreRecord, db.Model):
    __tablename__ = "clients"
    ID_PREFIX = "client"

    type = db.Column(db.String(16), nullable=False, default="individual")
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    company_name = db.Column(db.String(255), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    notes = db.Column(db.Text, nullable=False, default="")

    # Set by the store on creation
    created_at = db.Column(db.DateTime, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "company_name": self.company_name,
            "tags": list(self.tags or []),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Vehicle(StoreRecord, db.Model):
    __tablename__ = "vehicles"
    ID_PREFIX = "veh"

    client_id = db.Column(db.String(64), nullable=False, index=True)
    make = db.Column(db.String(128), nullable=False)
    model = db.Column(db.String(128), nullable=False)
    year = db.Column(db.Integer, nullable=True)
    plate = db.Column(db.String(32), nullable=False, default="")
    vin = db.Column(db.String(64), nullable=False, default="")
    mileage = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "plate": self.plate,
            "vin": self.vin,
            "mileage": self.mileage,
        }
