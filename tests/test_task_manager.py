"""
TaskManager: completion timestamps, urgent/overdue/today queries and helpers.
"""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from bizops.core.utils import utcnow
from bizops.domain.errors import ConflictError, ErrorKind, ValidationError
from bizops.services import ShipmentManager, TaskManager


@pytest.fixture()
def tasks(temp_db):
    return TaskManager(temp_db)


def test_defaults_on_create(tasks):
    task = tasks.add_task({"title": "Call supplier"})
    assert task["priority"] == "MEDIUM"
    assert task["status"] == "PENDING"
    assert task["completed_at"] is None
    assert task["tags"] == []


def test_created_completed_task_has_timestamp(tasks):
    task = tasks.add_task({"title": "Done already", "status": "COMPLETED"})
    assert task["completed_at"] is not None


def test_completion_timestamp_follows_status(tasks):
    task = tasks.add_task({"title": "Ship samples"})
    done = tasks.complete_task(task["id"])
    assert done["status"] == "COMPLETED"
    assert done["completed_at"] is not None

    again = tasks.update_task(task["id"], {"status": "COMPLETED"})
    assert again["completed_at"] == done["completed_at"]

    reopened = tasks.update_task(task["id"], {"status": "IN_PROGRESS"})
    assert reopened["completed_at"] is None

    renamed = tasks.update_task(task["id"], {"title": "Ship samples today"})
    assert renamed["completed_at"] is None


def test_urgent_task_scenario(tasks):
    task = tasks.add_task({"title": "Fix invoice", "priority": "URGENT", "status": "PENDING"})
    assert [t["id"] for t in tasks.get_urgent_tasks()] == [task["id"]]
    tasks.complete_task(task["id"])
    assert tasks.get_urgent_tasks() == []
    assert [t["id"] for t in tasks.get_tasks_by_status("completed")] == [task["id"]]


def test_priority_query_excludes_completed(tasks):
    open_task = tasks.add_task({"title": "Open", "priority": "HIGH"})
    tasks.add_task({"title": "Closed", "priority": "HIGH", "status": "COMPLETED"})
    assert [t["id"] for t in tasks.get_tasks_by_priority("high")] == [open_task["id"]]
    with pytest.raises(ValidationError):
        tasks.get_tasks_by_priority("CRITICAL")


def test_overdue_detection(tasks):
    yesterday = utcnow() - timedelta(days=1)
    late = tasks.add_task({"title": "Late", "due_date": yesterday})
    tasks.add_task({"title": "Future", "due_date": utcnow() + timedelta(days=3)})
    tasks.add_task({"title": "No date"})
    assert [t["id"] for t in tasks.get_overdue_tasks()] == [late["id"]]

    tasks.complete_task(late["id"])
    assert tasks.get_overdue_tasks() == []


def test_todays_tasks_use_local_day(tasks):
    local_noon = datetime.now().astimezone().replace(hour=12, minute=0, second=0, microsecond=0)
    today = tasks.add_task({"title": "Today", "due_date": local_noon})
    tasks.add_task({"title": "Tomorrow", "due_date": local_noon + timedelta(days=1)})
    tasks.add_task({"title": "Done today", "due_date": local_noon, "status": "COMPLETED"})
    assert [t["id"] for t in tasks.get_todays_tasks(local_noon)] == [today["id"]]


def test_relationship_queries(tasks, customer):
    task = tasks.add_task({"title": "Follow up", "customer_id": customer["id"]})
    assert [t["id"] for t in tasks.get_tasks_by_customer(customer["id"])] == [task["id"]]
    assert tasks.get_tasks_by_customer("missing") == []
    assert tasks.get_tasks_by_shipment("missing") == []
    assert tasks.get_tasks_by_order("missing") == []
    loaded = tasks.get_task_with_relations(task["id"])
    assert loaded["customer"]["name"] == "Acme Corp"


def test_search(tasks):
    tasks.add_task({"title": "Call Supplier", "assigned_to": "Maria"})
    tasks.add_task({"title": "Pack boxes", "description": "Use the BIG tape"})

    def titles(query):
        return sorted(t["title"] for t in tasks.search_tasks(query))

    assert titles("supplier") == ["Call Supplier"]
    assert titles("big tape") == ["Pack boxes"]
    assert titles("maria") == ["Call Supplier"]
    assert titles("") == ["Call Supplier", "Pack boxes"]


def test_follow_up_and_shipment_tasks(tasks, customer, temp_db):
    before = utcnow()
    follow_up = tasks.create_customer_follow_up_task(customer["id"], "Check in")
    assert follow_up["priority"] == "MEDIUM"
    assert follow_up["status"] == "PENDING"
    assert follow_up["tags"] == ["follow-up"]
    assert follow_up["customer_id"] == customer["id"]
    assert before + timedelta(days=7) <= follow_up["due_date"] <= utcnow() + timedelta(days=7)

    shipment = ShipmentManager(temp_db).add_shipment(
        {"tracking_number": "T-1", "customer_id": customer["id"], "origin": "A", "destination": "B", "carrier": "UPS"}
    )
    explicit = tasks.create_shipment_task(shipment["id"], "Chase carrier", priority="HIGH", due_date="2030-01-02")
    assert explicit["tags"] == ["shipment"]
    assert explicit["priority"] == "HIGH"
    assert explicit["shipment_id"] == shipment["id"]
    assert explicit["due_date"] == datetime(2030, 1, 2)


def test_task_for_unknown_shipment_is_a_conflict(tasks):
    with pytest.raises(ConflictError):
        tasks.create_shipment_task("missing-shipment", "Chase carrier")


def test_update_and_delete_missing(tasks):
    assert tasks.update_task("missing", {"title": "x"}) is None
    assert tasks.last_error.kind is ErrorKind.NOT_FOUND
    assert tasks.delete_task("missing") is False
    assert tasks.last_error.kind is ErrorKind.NOT_FOUND
    with pytest.raises(ValidationError):
        tasks.update_task("missing", {"status": "NOT_A_STATUS"})
