"""SQLAlchemy models for customers, contacts, tasks, shipments and orders."""
from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from bizops.core.utils import utcnow

from .session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


order_shipments = Table(
    "order_shipments",
    Base.metadata,
    Column("order_id", String(36), ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True),
    Column("shipment_id", String(36), ForeignKey("shipments.id", ondelete="CASCADE"), primary_key=True),
)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(64), nullable=True)
    company = Column(String(255), nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    zip_code = Column(String(32), nullable=True)
    country = Column(String(128), nullable=False)
    website = Column(String(255), nullable=True)
    vat_number = Column(String(64), nullable=True)
    industry = Column(String(128), nullable=True)
    tags = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    needs_attention = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    contacts = relationship("Contact", back_populates="customer", cascade="all,delete-orphan")
    tasks = relationship("Task", back_populates="customer")
    shipments = relationship("Shipment", back_populates="customer")
    orders = relationship("Order", back_populates="customer")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=_new_id)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    role = Column(String(128), nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="contacts")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(16), default="MEDIUM", nullable=False)
    status = Column(String(16), default="PENDING", nullable=False)
    due_date = Column(DateTime, nullable=True)
    assigned_to = Column(String(255), nullable=True)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    shipment_id = Column(String(36), ForeignKey("shipments.id", ondelete="SET NULL"), nullable=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True)
    tags = Column(Text, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="tasks")
    shipment = relationship("Shipment", back_populates="tasks")
    order = relationship("Order", back_populates="tasks")


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(String(36), primary_key=True, default=_new_id)
    tracking_number = Column(String(128), unique=True, nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    carrier = Column(String(128), nullable=False)
    status = Column(String(32), default="PENDING", nullable=False)
    estimated_delivery = Column(DateTime, nullable=True)
    actual_delivery = Column(DateTime, nullable=True)
    weight = Column(Float, nullable=True)
    dimensions = Column(Text, nullable=True)
    value = Column(Float, nullable=True)
    insurance = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="shipments")
    tasks = relationship("Task", back_populates="shipment")
    orders = relationship("Order", secondary=order_shipments, back_populates="shipments")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    order_number = Column(String(128), unique=True, nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    status = Column(String(16), default="PENDING", nullable=False)
    order_date = Column(DateTime, default=utcnow, nullable=False)
    due_date = Column(DateTime, nullable=True)
    total_amount = Column(Float, default=0.0, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all,delete-orphan",
        order_by="OrderItem.created_at",
    )
    tasks = relationship("Task", back_populates="order")
    shipments = relationship("Shipment", secondary=order_shipments, back_populates="orders")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Float, default=0.0, nullable=False)
    total_price = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    order = relationship("Order", back_populates="items")


MODELS_BY_TABLE = {
    model.__tablename__: model
    for model in (Customer, Contact, Shipment, Order, OrderItem, Task)
}
