"""
Payload validation for create and partial updates, including nested items.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bizops.domain.codec import Dimensions
from bizops.domain.enums import EntityKind
from bizops.domain.errors import ErrorKind, ValidationError
from bizops.domain.validation import fill_item_total, validate_payload


def test_customer_requires_name_email_country():
    with pytest.raises(ValidationError) as exc:
        validate_payload(EntityKind.CUSTOMER, {"phone": "123"})
    assert set(exc.value.fields) == {"name", "email", "country"}
    assert exc.value.kind is ErrorKind.VALIDATION
    assert exc.value.entity == "customer"


def test_customer_format_checks():
    with pytest.raises(ValidationError) as exc:
        validate_payload(
            "customer",
            {"name": "A", "email": "not-an-email", "country": "US", "website": "ftp://x"},
        )
    assert set(exc.value.fields) == {"email", "website"}


def test_id_and_unknown_fields_are_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_payload("customer", {"id": "x", "name": "A", "email": "a@b.co", "country": "US", "foo": 1})
    assert set(exc.value.fields) == {"id", "foo"}


def test_partial_validation_checks_only_present_fields():
    assert validate_payload("customer", {"phone": " 555 "}, partial=True) == {"phone": "555"}
    with pytest.raises(ValidationError) as exc:
        validate_payload("customer", {"email": None}, partial=True)
    assert exc.value.fields == ["email"]


def test_task_enums_are_closed_and_case_insensitive():
    data = validate_payload("task", {"title": "Call", "priority": "urgent", "status": "in_progress"})
    assert data["priority"] == "URGENT"
    assert data["status"] == "IN_PROGRESS"
    with pytest.raises(ValidationError) as exc:
        validate_payload("task", {"title": "Call", "status": "DONE"})
    assert exc.value.fields == ["status"]


def test_task_hours_must_be_non_negative():
    with pytest.raises(ValidationError) as exc:
        validate_payload("task", {"title": "x", "estimated_hours": -1})
    assert exc.value.fields == ["estimated_hours"]


def test_dates_are_normalized_to_naive_utc():
    aware = datetime(2025, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=-3)))
    data = validate_payload("task", {"title": "x", "due_date": aware})
    assert data["due_date"] == datetime(2025, 1, 15, 15, 0)
    data = validate_payload("task", {"title": "x", "due_date": "2025-02-01"})
    assert data["due_date"] == datetime(2025, 2, 1)


def test_shipment_dimensions_accept_dataclass():
    data = validate_payload(
        "shipment",
        {
            "tracking_number": "T1",
            "customer_id": "c1",
            "origin": "A",
            "destination": "B",
            "carrier": "UPS",
            "dimensions": Dimensions(1.0, 2.0, 3.0),
        },
    )
    assert data["dimensions"] == {"length": 1.0, "width": 2.0, "height": 3.0}


def test_shipment_numeric_ranges():
    with pytest.raises(ValidationError) as exc:
        validate_payload("shipment", {"weight": -2, "value": -1}, partial=True)
    assert set(exc.value.fields) == {"weight", "value"}


def test_order_items_are_validated_with_paths():
    with pytest.raises(ValidationError) as exc:
        validate_payload(
            "order",
            {
                "order_number": "O-1",
                "customer_id": "c1",
                "items": [
                    {"product_name": "Widget", "quantity": 0, "unit_price": 1},
                    {"quantity": 1},
                ],
            },
        )
    assert "items.0.quantity" in exc.value.fields
    assert "items.1.product_name" in exc.value.fields


def test_item_total_must_match_quantity_times_price():
    with pytest.raises(ValidationError) as exc:
        validate_payload("order_item", {"product_name": "W", "quantity": 2, "unit_price": 5, "total_price": 11})
    assert exc.value.fields == ["total_price"]
    ok = validate_payload("order_item", {"product_name": "W", "quantity": 3, "unit_price": 0.1, "total_price": 0.3})
    assert ok["total_price"] == 0.3


def test_fill_item_total_derives_missing_total():
    assert fill_item_total({"product_name": "W", "quantity": 3, "unit_price": 2.5})["total_price"] == 7.5
    assert fill_item_total({"product_name": "W"}) == {
        "product_name": "W",
        "quantity": 1,
        "unit_price": 0.0,
        "total_price": 0.0,
    }


def test_payload_must_be_mapping():
    with pytest.raises(ValidationError):
        validate_payload("contact", ["not", "a", "dict"])
