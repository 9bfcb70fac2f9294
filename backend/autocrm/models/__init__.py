from .base import StoreRecord
from .branches import Branch, User, USER_ROLES
from .catalog import Service, PartItem, SERVICE_CATEGORIES
from .customers import Client, Vehicle, CLIENT_TYPES
from .appointments import Appointment, APPOINTMENT_STATUSES
from .work_orders import (
    WorkOrder,
    WorkOrderServiceLine,
    WorkOrderPartLine,
    WORK_ORDER_STATUSES,
    PAYMENT_STATUSES,
    PART_LINE_STATUSES,
    CLOSED_WORK_ORDER_STATUSES,
)
from .inventory import InventoryMovement, MOVEMENT_TYPES

__all__ = [
    'StoreRecord',
    'Branch', 'User', 'Service', 'PartItem',
    'Client', 'Vehicle', 'Appointment',
    'WorkOrder', 'WorkOrderServiceLine', 'WorkOrderPartLine',
    'InventoryMovement',
    'USER_ROLES', 'SERVICE_CATEGORIES', 'CLIENT_TYPES', 'APPOINTMENT_STATUSES',
    'WORK_ORDER_STATUSES', 'PAYMENT_STATUSES', 'PART_LINE_STATUSES',
    'CLOSED_WORK_ORDER_STATUSES', 'MOVEMENT_TYPES',
]
