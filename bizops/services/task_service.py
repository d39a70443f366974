"""
Task use cases: CRUD, status/priority queries and convenience constructors.

``completed_at`` is owned here: it is set when a task moves to COMPLETED and
cleared when it moves to any other status.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from bizops.core.config import get_settings
from bizops.core.utils import days_from_now, local_day_bounds, to_utc_naive, utcnow
from bizops.db.models import Task
from bizops.db.session import Database
from bizops.domain.codec import encode_tags
from bizops.domain.enums import (
    FOLLOW_UP_TAG,
    SHIPMENT_TAG,
    EntityKind,
    Priority,
    TaskStatus,
)
from bizops.domain.validation import validate_payload
from bizops.repositories import EntityStore

from .base import BaseManager, enum_value
from .serializers import entities_to_dicts, entity_to_dict

COMPLETED = TaskStatus.COMPLETED.value
OPEN = {"status": {"not": COMPLETED}}


def _to_columns(payload: dict) -> dict:
    values = dict(payload)
    if "tags" in values:
        values["tags"] = encode_tags(values["tags"])
    return values


class TaskManager(BaseManager):
    entity_name = "task"

    def __init__(self, database: Database) -> None:
        super().__init__(database)
        self.tasks: EntityStore[Task] = EntityStore(database, Task)

    # -------------------------------------- reads --------------------------------------
    def get_tasks(self, where: Mapping[str, Any] | None = None) -> list[dict]:
        return entities_to_dicts(self.tasks.find_all(where))

    def get_task_by_id(self, task_id: str) -> Optional[dict]:
        return entity_to_dict(self.tasks.find_by_id(task_id))

    def get_task_with_relations(self, task_id: str) -> Optional[dict]:
        return entity_to_dict(self.tasks.find_by_id(task_id, include=("customer", "shipment", "order")))

    def get_tasks_by_priority(self, priority: Priority | str) -> list[dict]:
        """Open (not completed) tasks with the given priority."""
        return self.get_tasks({"priority": enum_value(Priority, priority, "priority"), **OPEN})

    def get_tasks_by_status(self, status: TaskStatus | str) -> list[dict]:
        return self.get_tasks({"status": enum_value(TaskStatus, status, "status")})

    def get_urgent_tasks(self) -> list[dict]:
        return self.get_tasks_by_priority(Priority.URGENT)

    def get_overdue_tasks(self, now: Optional[datetime] = None) -> list[dict]:
        cutoff = to_utc_naive(now) if now else utcnow()
        return self.get_tasks({"due_date": {"lt": cutoff}, **OPEN})

    def get_tasks_due_between(self, start: datetime, end: datetime, *, include_completed: bool = False) -> list[dict]:
        """Tasks due in ``[start, end)``."""
        where: dict = {"due_date": {"gte": to_utc_naive(start), "lt": to_utc_naive(end)}}
        if not include_completed:
            where.update(OPEN)
        return self.get_tasks(where)

    def get_todays_tasks(self, now: Optional[datetime] = None) -> list[dict]:
        """Open tasks due during the caller's local calendar day."""
        start, end = local_day_bounds(now)
        return self.get_tasks_due_between(start, end)

    def get_tasks_by_customer(self, customer_id: str) -> list[dict]:
        return self.get_tasks({"customer_id": customer_id})

    def get_tasks_by_shipment(self, shipment_id: str) -> list[dict]:
        return self.get_tasks({"shipment_id": shipment_id})

    def get_tasks_by_order(self, order_id: str) -> list[dict]:
        return self.get_tasks({"order_id": order_id})

    def search_tasks(self, query: str) -> list[dict]:
        """Case-insensitive match on title, description and assignee; empty query returns all."""
        term = (query or "").strip()
        if not term:
            return self.get_tasks()
        return self.get_tasks(
            {
                "OR": [
                    {"title": {"icontains": term}},
                    {"description": {"icontains": term}},
                    {"assigned_to": {"icontains": term}},
                ]
            }
        )

    def count_tasks(self, where: Mapping[str, Any] | None = None) -> int:
        return self.tasks.count(where)

    # -------------------------------------- writes --------------------------------------
    def add_task(self, data: Mapping[str, Any]) -> dict:
        payload = validate_payload(EntityKind.TASK, data)
        payload.setdefault("priority", Priority.MEDIUM.value)
        payload.setdefault("status", TaskStatus.PENDING.value)
        payload["completed_at"] = utcnow() if payload["status"] == COMPLETED else None
        entity = self.tasks.create(_to_columns(payload))
        self.logger.info("Task %s created: %s", entity.id, entity.title)
        return entity_to_dict(entity)

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Optional[dict]:
        self._reset()
        payload = validate_payload(EntityKind.TASK, updates, partial=True)
        current = self.tasks.find_by_id(task_id)
        if not current:
            self._not_found(task_id)
            return None
        if "status" in payload:
            if payload["status"] == COMPLETED:
                if current.status != COMPLETED or current.completed_at is None:
                    payload["completed_at"] = utcnow()
            else:
                payload["completed_at"] = None
        entity = self._guard("update", task_id, lambda: self.tasks.update(task_id, _to_columns(payload)), None)
        if entity is None and self.last_error is None:
            self._not_found(task_id)
        return entity_to_dict(entity)

    def complete_task(self, task_id: str) -> Optional[dict]:
        return self.update_task(task_id, {"status": COMPLETED})

    def delete_task(self, task_id: str) -> bool:
        self._reset()
        deleted = self._guard("delete", task_id, lambda: self.tasks.delete(task_id), False)
        if not deleted and self.last_error is None:
            self._not_found(task_id)
        return deleted

    # -------------------------------------- convenience --------------------------------------
    def _default_due(self, due_date: datetime | str | None) -> datetime | str:
        if due_date is not None:
            return due_date
        return days_from_now(get_settings().follow_up_days)

    def create_customer_follow_up_task(
        self,
        customer_id: str,
        title: str,
        due_date: datetime | str | None = None,
        *,
        priority: Priority | str = Priority.MEDIUM,
    ) -> dict:
        """MEDIUM/PENDING task for a customer, tagged follow-up, due in a week by default."""
        return self.add_task(
            {
                "title": title,
                "priority": priority,
                "status": TaskStatus.PENDING,
                "due_date": self._default_due(due_date),
                "customer_id": customer_id,
                "tags": [FOLLOW_UP_TAG],
            }
        )

    def create_shipment_task(
        self,
        shipment_id: str,
        title: str,
        priority: Priority | str = Priority.MEDIUM,
        due_date: datetime | str | None = None,
    ) -> dict:
        return self.add_task(
            {
                "title": title,
                "priority": priority,
                "status": TaskStatus.PENDING,
                "due_date": self._default_due(due_date),
                "shipment_id": shipment_id,
                "tags": [SHIPMENT_TAG],
            }
        )
