"""
EntityStore against a temporary SQLite database: filters, pagination, links.
"""
from __future__ import annotations

import pytest

from bizops.db.models import Contact, Customer, Order, OrderItem, Shipment
from bizops.domain.errors import ConflictError
from bizops.repositories import EntityStore


def _customer(store: EntityStore, name: str, email: str, country: str = "US", **extra) -> Customer:
    return store.create({"name": name, "email": email, "country": country, **extra})


@pytest.fixture()
def stores(temp_db):
    return {
        "customers": EntityStore(temp_db, Customer),
        "contacts": EntityStore(temp_db, Contact),
        "orders": EntityStore(temp_db, Order),
        "items": EntityStore(temp_db, OrderItem),
        "shipments": EntityStore(temp_db, Shipment),
    }


def test_create_find_update_delete(stores):
    customers = stores["customers"]
    created = _customer(customers, "Alice", "alice@example.com")
    assert created.id
    assert created.created_at is not None

    found = customers.find_by_id(created.id)
    assert found is not None and found.email == "alice@example.com"
    assert customers.find_unique("email", "alice@example.com").id == created.id

    updated = customers.update(created.id, {"company": "Wonderland", "id": "ignored"})
    assert updated.company == "Wonderland"
    assert updated.id == created.id

    assert customers.update("missing", {"company": "x"}) is None
    assert customers.delete(created.id) is True
    assert customers.delete(created.id) is False
    assert customers.find_by_id(created.id) is None


def test_unique_violation_is_a_conflict(stores):
    _customer(stores["customers"], "Alice", "alice@example.com")
    with pytest.raises(ConflictError):
        _customer(stores["customers"], "Alice 2", "alice@example.com")


def test_unknown_fields_are_rejected(stores):
    with pytest.raises(ValueError):
        stores["customers"].create({"name": "A", "email": "a@b.co", "country": "US", "nope": 1})
    with pytest.raises(ValueError):
        stores["customers"].find_all({"nope": 1})


def test_filter_operators(stores):
    customers = stores["customers"]
    _customer(customers, "Alice", "alice@example.com", industry="Retail")
    _customer(customers, "Bob", "bob@example.com", country="BR")
    _customer(customers, "Carol", "carol@example.com", industry="Tech")

    def names(where):
        return sorted(c.name for c in customers.find_all(where))

    assert names({"name": {"icontains": "ALI"}}) == ["Alice"]
    assert names({"OR": [{"name": "Bob"}, {"industry": "Tech"}]}) == ["Bob", "Carol"]
    assert names({"NOT": {"country": "US"}}) == ["Bob"]
    assert names({"country": {"in": ["BR"]}}) == ["Bob"]
    assert names({"industry": {"not": "Retail"}}) == ["Bob", "Carol"]
    assert names({"industry": None}) == ["Bob"]
    assert names({"industry": {"not": None}}) == ["Alice", "Carol"]
    assert names({"name": {"contains": "%"}}) == []


def test_relationship_filters(stores):
    customers, contacts = stores["customers"], stores["contacts"]
    alice = _customer(customers, "Alice", "alice@example.com")
    _customer(customers, "Bob", "bob@example.com")
    contacts.create({"customer_id": alice.id, "name": "Jane", "role": "CTO"})

    some = customers.find_all({"contacts": {"some": {"role": {"icontains": "cto"}}}})
    assert [c.name for c in some] == ["Alice"]
    none = customers.find_all({"contacts": {"none": {}}})
    assert [c.name for c in none] == ["Bob"]


def test_count_sum_exists_and_paginate(stores):
    customers = stores["customers"]
    created = [_customer(customers, f"C{i}", f"c{i}@example.com") for i in range(5)]
    assert customers.count() == 5
    assert customers.exists(created[0].id)
    assert not customers.exists("missing")

    page = customers.paginate(page=2, page_size=2)
    assert page.total == 5
    assert page.pages == 3
    assert [c.name for c in page.data] == ["C2", "C3"]

    orders = stores["orders"]
    orders.create({"order_number": "O-1", "customer_id": created[0].id, "total_amount": 10.5})
    orders.create({"order_number": "O-2", "customer_id": created[0].id, "total_amount": 4.5})
    assert orders.sum("total_amount") == 15.0
    assert orders.sum("total_amount", {"order_number": "O-3"}) == 0.0


def test_create_with_related_children(stores):
    customer = _customer(stores["customers"], "Alice", "alice@example.com")
    order = stores["orders"].create(
        {"order_number": "O-1", "customer_id": customer.id},
        related={"items": [{"product_name": "First"}, {"product_name": "Second"}]},
        include=("items",),
    )
    assert [item.product_name for item in order.items] == ["First", "Second"]
    assert all(item.order_id == order.id for item in order.items)


def test_link_many_to_many(stores):
    customer = _customer(stores["customers"], "Alice", "alice@example.com")
    order = stores["orders"].create({"order_number": "O-1", "customer_id": customer.id})
    shipment = stores["shipments"].create(
        {"tracking_number": "T-1", "customer_id": customer.id, "origin": "A", "destination": "B", "carrier": "UPS"}
    )
    orders = stores["orders"]
    assert orders.link("missing", "shipments", shipment.id) is None
    assert orders.link(order.id, "shipments", "missing") is False
    assert orders.link(order.id, "shipments", shipment.id) is True
    assert orders.link(order.id, "shipments", shipment.id) is True
    loaded = orders.find_by_id(order.id, include=("shipments",))
    assert [s.tracking_number for s in loaded.shipments] == ["T-1"]


def test_delete_all_cascades_children(stores):
    customer = _customer(stores["customers"], "Alice", "alice@example.com")
    stores["contacts"].create({"customer_id": customer.id, "name": "Jane"})
    assert stores["customers"].delete_all() == 1
    assert stores["contacts"].count() == 0
