"""Declarative payload validation before writes."""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from .enums import EntityKind
from .errors import FieldError, ValidationError
from .schemas import (
    ContactPayload,
    CustomerPayload,
    OrderItemPayload,
    OrderPayload,
    ShipmentPayload,
    TaskPayload,
    BasePayload,
)

SCHEMAS: dict[EntityKind, type[BasePayload]] = {
    EntityKind.CUSTOMER: CustomerPayload,
    EntityKind.CONTACT: ContactPayload,
    EntityKind.TASK: TaskPayload,
    EntityKind.SHIPMENT: ShipmentPayload,
    EntityKind.ORDER: OrderPayload,
    EntityKind.ORDER_ITEM: OrderItemPayload,
}

PRICE_TOLERANCE = 0.005


def _loc(parts: tuple) -> str:
    return ".".join(str(p) for p in parts) or "__root__"


def _presence_errors(schema: type[BasePayload], payload: Mapping[str, Any], *, partial: bool, prefix: str = "") -> list[FieldError]:
    errors: list[FieldError] = []
    if not partial:
        for name in schema.required_fields:
            if payload.get(name) is None:
                errors.append(FieldError(prefix + name, "Field required"))
    for name in schema.not_null_fields:
        if name in payload and payload[name] is None and (partial or name not in schema.required_fields):
            errors.append(FieldError(prefix + name, "Field may not be null"))
    return errors


def _item_presence_errors(payload: Mapping[str, Any]) -> list[FieldError]:
    items = payload.get("items")
    if not isinstance(items, (list, tuple)):
        return []
    errors: list[FieldError] = []
    for idx, item in enumerate(items):
        if isinstance(item, Mapping):
            errors.extend(_presence_errors(OrderItemPayload, item, partial=False, prefix=f"items.{idx}."))
    return errors


def item_total_error(item: Mapping[str, Any], prefix: str = "") -> FieldError | None:
    """Check a supplied total_price against quantity x unit_price."""
    total = item.get("total_price")
    if total is None:
        return None
    quantity = item.get("quantity") if item.get("quantity") is not None else 1
    unit_price = item.get("unit_price") if item.get("unit_price") is not None else 0.0
    expected = quantity * unit_price
    if abs(float(total) - expected) > PRICE_TOLERANCE:
        return FieldError(prefix + "total_price", f"must equal quantity * unit_price ({expected:.2f})")
    return None


def fill_item_total(item: dict) -> dict:
    """Apply item defaults and derive total_price when it was not supplied."""
    item.setdefault("quantity", 1)
    item.setdefault("unit_price", 0.0)
    if item.get("total_price") is None:
        item["total_price"] = round(item["quantity"] * item["unit_price"], 2)
    return item


def validate_payload(kind: EntityKind | str, payload: Mapping[str, Any], *, partial: bool = False) -> dict:
    """
    Validate an entity payload and return the normalized data.

    With ``partial=True`` only the fields present are validated (updates).
    Raises ValidationError listing every offending field.
    """
    kind = EntityKind(kind)
    schema = SCHEMAS[kind]
    if not isinstance(payload, Mapping):
        raise ValidationError([FieldError("__root__", "payload must be a mapping")], entity=kind.value)

    errors = _presence_errors(schema, payload, partial=partial)
    if kind is EntityKind.ORDER:
        errors.extend(_item_presence_errors(payload))

    data: dict = {}
    try:
        model = schema.model_validate(dict(payload))
        data = model.model_dump(exclude_unset=True)
    except PydanticValidationError as exc:
        for err in exc.errors():
            errors.append(FieldError(_loc(tuple(err.get("loc") or ())), err.get("msg", "invalid value")))

    if kind is EntityKind.ORDER_ITEM:
        err = item_total_error(data)
        if err:
            errors.append(err)
    elif kind is EntityKind.ORDER:
        for idx, item in enumerate(data.get("items") or []):
            err = item_total_error(item, prefix=f"items.{idx}.")
            if err:
                errors.append(err)

    if errors:
        seen: set[tuple[str, str]] = set()
        unique = []
        for e in errors:
            key = (e.field, e.message)
            if key not in seen:
                seen.add(key)
                unique.append(e)
        raise ValidationError(unique, entity=kind.value)
    return data
