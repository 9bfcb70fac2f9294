from __future__ import annotations

from ..extensions import db
from .base import StoreRecord


USER_ROLES = ("owner", "manager", "staff")


class Branch(StoreRecord, db.Model):
    """A physical service location. Stock and staff are tracked per branch."""
    __tablename__ = "branches"
    ID_PREFIX = "branch"

    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=False, default="")
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    # {"open": "09:00", "close": "18:00"}
    working_hours = db.Column(db.JSON, nullable=False, default=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "timezone": self.timezone,
            "working_hours": dict(self.working_hours or {}),
        }


class User(StoreRecord, db.Model):
    __tablename__ = "users"
    ID_PREFIX = "user"

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(64), nullable=False, default="")

    # owner | manager | staff; see permissions.DEFAULT_ROLE_PERMISSIONS
    role = db.Column(db.String(16), nullable=False, default="staff")
    branch_id = db.Column(db.String(64), nullable=False, index=True)
    avatar = db.Column(db.String(512), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "branch_id": self.branch_id,
            "avatar": self.avatar,
        }
