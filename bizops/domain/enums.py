"""Closed value sets and fixed markers used across the data model."""
from __future__ import annotations

from enum import Enum


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ON_HOLD = "ON_HOLD"


class ShipmentStatus(str, Enum):
    PENDING = "PENDING"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    EXCEPTION = "EXCEPTION"
    RETURNED = "RETURNED"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class EntityKind(str, Enum):
    CUSTOMER = "customer"
    CONTACT = "contact"
    TASK = "task"
    SHIPMENT = "shipment"
    ORDER = "order"
    ORDER_ITEM = "order_item"


ACTIVE_SHIPMENT_STATUSES = (
    ShipmentStatus.PENDING.value,
    ShipmentStatus.PICKED_UP.value,
    ShipmentStatus.IN_TRANSIT.value,
    ShipmentStatus.OUT_FOR_DELIVERY.value,
)

FOLLOW_UP_TAG = "follow-up"
SHIPMENT_TAG = "shipment"
