"""
Pydantic payload models for every entity kind.

All fields are optional at the model level so the same model serves both
create and partial-update validation; ``required_fields`` lists what a
create must carry and ``not_null_fields`` what may never be set to null.
"""
from __future__ import annotations

from datetime import date, datetime
import re
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bizops.core.utils import to_utc_naive

from .codec import Dimensions
from .enums import OrderStatus, Priority, ShipmentStatus, TaskStatus

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
URL_PATTERN = re.compile(r"https?://[^\s/$.?#][^\s]*", re.IGNORECASE)


def _coerce_datetime(value: Any) -> Any:
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return to_utc_naive(date.fromisoformat(value.strip()))
        except ValueError:
            return value
    if isinstance(value, date) and not isinstance(value, datetime):
        return to_utc_naive(value)
    return value


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not EMAIL_PATTERN.fullmatch(value):
        raise ValueError("value is not a valid email address")
    return value


class BasePayload(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True, str_strip_whitespace=True)

    required_fields: ClassVar[tuple[str, ...]] = ()
    not_null_fields: ClassVar[tuple[str, ...]] = ()
    datetime_fields: ClassVar[tuple[str, ...]] = ()
    enum_fields: ClassVar[tuple[str, ...]] = ("status", "priority")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_inputs(cls, value, info):
        if info.field_name in cls.datetime_fields:
            return _coerce_datetime(value)
        if info.field_name in cls.enum_fields and isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_dates(cls, value, info):
        if info.field_name in cls.datetime_fields and isinstance(value, datetime):
            return to_utc_naive(value)
        return value


class CustomerPayload(BasePayload):
    required_fields = ("name", "email", "country")
    not_null_fields = ("name", "email", "country", "needs_attention")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=64)
    company: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=128)
    zip_code: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, min_length=1, max_length=128)
    website: Optional[str] = Field(None, max_length=255)
    vat_number: Optional[str] = Field(None, max_length=64)
    industry: Optional[str] = Field(None, max_length=128)
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    needs_attention: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v):
        if v is not None and not URL_PATTERN.fullmatch(v):
            raise ValueError("value is not a valid http(s) URL")
        return v


class ContactPayload(BasePayload):
    required_fields = ("customer_id", "name")
    not_null_fields = ("customer_id", "name", "is_primary")

    customer_id: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=64)
    role: Optional[str] = Field(None, max_length=128)
    is_primary: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class TaskPayload(BasePayload):
    required_fields = ("title",)
    not_null_fields = ("title", "priority", "status")
    datetime_fields = ("due_date",)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    customer_id: Optional[str] = None
    shipment_id: Optional[str] = None
    order_id: Optional[str] = None
    tags: Optional[list[str]] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)


class DimensionsPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    length: float = Field(..., ge=0)
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class ShipmentPayload(BasePayload):
    required_fields = ("tracking_number", "customer_id", "origin", "destination", "carrier")
    not_null_fields = required_fields + ("status",)
    datetime_fields = ("estimated_delivery", "actual_delivery")

    tracking_number: Optional[str] = Field(None, min_length=1, max_length=128)
    customer_id: Optional[str] = Field(None, min_length=1)
    origin: Optional[str] = Field(None, min_length=1, max_length=255)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    carrier: Optional[str] = Field(None, min_length=1, max_length=128)
    status: Optional[ShipmentStatus] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[DimensionsPayload] = None
    value: Optional[float] = Field(None, ge=0)
    insurance: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("dimensions", mode="before")
    @classmethod
    def unpack_dimensions(cls, v):
        if isinstance(v, Dimensions):
            return v.as_dict()
        return v


class OrderItemPayload(BasePayload):
    required_fields = ("product_name",)
    not_null_fields = ("product_name", "quantity", "unit_price", "total_price")

    order_id: Optional[str] = None
    product_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, gt=0)
    unit_price: Optional[float] = Field(None, ge=0)
    total_price: Optional[float] = Field(None, ge=0)


class OrderPayload(BasePayload):
    required_fields = ("order_number", "customer_id")
    not_null_fields = ("order_number", "customer_id", "status", "order_date", "total_amount")
    datetime_fields = ("order_date", "due_date")

    order_number: Optional[str] = Field(None, min_length=1, max_length=128)
    customer_id: Optional[str] = Field(None, min_length=1)
    status: Optional[OrderStatus] = None
    order_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    total_amount: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    items: Optional[list[OrderItemPayload]] = None
