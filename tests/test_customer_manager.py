"""
CustomerManager: CRUD, search, tags, contacts and delete rules.
"""
from __future__ import annotations

import pytest

from bizops.domain.errors import ConflictError, ErrorKind, ValidationError
from bizops.services import CustomerManager, OrderManager, TaskManager


@pytest.fixture()
def manager(temp_db):
    return CustomerManager(temp_db)


def test_add_and_lookup(manager, customer):
    assert customer["tags"] == ["vip"]
    assert customer["needs_attention"] is False
    assert manager.get_customer_by_id(customer["id"])["name"] == "Acme Corp"
    assert manager.get_customer_by_email("ops@acme.test")["id"] == customer["id"]
    assert manager.get_customer_by_email("nobody@acme.test") is None
    assert manager.get_customer_by_id("missing") is None


def test_add_rejects_invalid_payload(manager):
    with pytest.raises(ValidationError) as exc:
        manager.add_customer({"name": "No Email", "country": "US"})
    assert exc.value.fields == ["email"]


def test_duplicate_email_raises_conflict(manager, customer):
    with pytest.raises(ConflictError):
        manager.add_customer({"name": "Other", "email": "ops@acme.test", "country": "US"})


def test_update_merges_and_reports_missing(manager, customer):
    updated = manager.update_customer(customer["id"], {"company": "Acme Ltd"})
    assert updated["company"] == "Acme Ltd"
    assert updated["name"] == "Acme Corp"
    assert manager.last_error is None

    assert manager.update_customer("missing", {"company": "x"}) is None
    assert manager.last_error.kind is ErrorKind.NOT_FOUND
    assert manager.last_error.entity_id == "missing"


def test_update_to_taken_email_is_swallowed(manager, customer):
    other = manager.add_customer({"name": "Other", "email": "other@acme.test", "country": "US"})
    assert manager.update_customer(other["id"], {"email": "ops@acme.test"}) is None
    assert manager.last_error.kind is ErrorKind.CONFLICT


def test_add_tag_is_idempotent(manager, customer):
    manager.add_tag_to_customer(customer["id"], "b2b")
    result = manager.add_tag_to_customer(customer["id"], "b2b")
    assert result["tags"] == ["vip", "b2b"]
    result = manager.remove_tag_from_customer(customer["id"], "vip")
    assert result["tags"] == ["b2b"]
    assert manager.add_tag_to_customer("missing", "x") is None


def test_search_is_case_insensitive_over_documented_fields(manager, customer):
    manager.add_customer(
        {"name": "Globex", "email": "hello@globex.test", "country": "Germany", "company": "Globex GmbH", "tags": ["wholesale"]}
    )
    manager.add_contact_to_customer(customer["id"], {"name": "Jane Doe", "role": "CTO"})

    def names(query):
        return sorted(c["name"] for c in manager.search_customers(query))

    assert names("ACME") == ["Acme Corp"]
    assert names("gmbh") == ["Globex"]
    assert names("germany") == ["Globex"]
    assert names("jane") == ["Acme Corp"]
    assert names("WHOLE") == ["Globex"]
    assert names("Ops Notes") == []
    assert names("") == ["Acme Corp", "Globex"]


def test_filters(manager, customer):
    manager.add_customer({"name": "Globex", "email": "hello@globex.test", "country": "Germany", "industry": "Tech"})
    assert [c["name"] for c in manager.filter_customers_by_tag("vip")] == ["Acme Corp"]
    assert [c["name"] for c in manager.filter_customers_by_industry("Tech")] == ["Globex"]
    assert [c["name"] for c in manager.filter_customers_by_country("USA")] == ["Acme Corp"]


def test_contacts(manager, customer):
    contact = manager.add_contact_to_customer(customer["id"], {"name": "Jane", "email": "jane@acme.test"})
    assert contact["is_primary"] is False
    assert [c["name"] for c in manager.get_contacts(customer["id"])] == ["Jane"]
    assert manager.get_contacts("missing") == []

    assert manager.add_contact_to_customer("missing", {"name": "X"}) is None
    assert manager.last_error.kind is ErrorKind.NOT_FOUND

    assert manager.remove_contact_from_customer("other-customer", contact["id"]) is False
    assert manager.remove_contact_from_customer(customer["id"], contact["id"]) is True
    assert manager.get_contacts(customer["id"]) == []


def test_needs_attention_flag(manager, customer):
    assert manager.get_customers_needing_attention() == []
    manager.set_needs_attention(customer["id"])
    assert [c["id"] for c in manager.get_customers_needing_attention()] == [customer["id"]]
    manager.set_needs_attention(customer["id"], False)
    assert manager.get_customers_needing_attention() == []


def test_with_relations(manager, customer, temp_db):
    manager.add_contact_to_customer(customer["id"], {"name": "Jane"})
    OrderManager(temp_db).add_order(
        {"order_number": "O-1", "customer_id": customer["id"], "items": [{"product_name": "Widget", "quantity": 2, "unit_price": 3}]}
    )
    loaded = manager.get_customer_with_relations(customer["id"])
    assert [c["name"] for c in loaded["contacts"]] == ["Jane"]
    assert loaded["orders"][0]["items"][0]["total_price"] == 6.0
    assert loaded["tasks"] == []
    assert "contacts" not in manager.get_customer_by_id(customer["id"])
    everyone = manager.get_customers_with_relations()
    assert [len(c["orders"]) for c in everyone] == [1]


def test_delete_cascades_contacts_and_orphans_tasks(manager, customer, temp_db):
    tasks = TaskManager(temp_db)
    manager.add_contact_to_customer(customer["id"], {"name": "Jane"})
    task = tasks.add_task({"title": "Call Acme", "customer_id": customer["id"]})

    assert manager.delete_customer(customer["id"]) is True
    assert manager.get_customer_by_id(customer["id"]) is None
    assert manager.get_contacts(customer["id"]) == []
    assert tasks.get_task_by_id(task["id"])["customer_id"] is None

    assert manager.delete_customer(customer["id"]) is False
    assert manager.last_error.kind is ErrorKind.NOT_FOUND


def test_delete_refused_while_orders_reference_customer(manager, customer, temp_db):
    OrderManager(temp_db).add_order({"order_number": "O-1", "customer_id": customer["id"]})
    assert manager.delete_customer(customer["id"]) is False
    assert manager.last_error.kind is ErrorKind.CONFLICT
    assert manager.last_error.details == {"shipments": 0, "orders": 1}
    assert manager.get_customer_by_id(customer["id"]) is not None
