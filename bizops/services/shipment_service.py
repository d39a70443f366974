"""Shipment use cases (lookups, status transitions, overdue detection)."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from bizops.core.utils import to_utc_naive, utcnow
from bizops.db.models import Shipment
from bizops.db.session import Database
from bizops.domain.codec import encode_dimensions
from bizops.domain.enums import ACTIVE_SHIPMENT_STATUSES, EntityKind, ShipmentStatus
from bizops.domain.validation import validate_payload
from bizops.repositories import EntityStore

from .base import BaseManager, enum_value
from .serializers import entities_to_dicts, entity_to_dict

DELIVERED = ShipmentStatus.DELIVERED.value


def _to_columns(payload: dict) -> dict:
    values = dict(payload)
    if "dimensions" in values:
        values["dimensions"] = encode_dimensions(values["dimensions"])
    return values


class ShipmentManager(BaseManager):
    entity_name = "shipment"

    def __init__(self, database: Database) -> None:
        super().__init__(database)
        self.shipments: EntityStore[Shipment] = EntityStore(database, Shipment)

    # -------------------------------------- reads --------------------------------------
    def get_shipments(self, where: Mapping[str, Any] | None = None) -> list[dict]:
        return entities_to_dicts(self.shipments.find_all(where))

    def get_shipment_by_id(self, shipment_id: str) -> Optional[dict]:
        return entity_to_dict(self.shipments.find_by_id(shipment_id))

    def get_shipment_with_relations(self, shipment_id: str) -> Optional[dict]:
        return entity_to_dict(self.shipments.find_by_id(shipment_id, include=("customer", "tasks", "orders")))

    def get_shipment_by_tracking_number(self, tracking_number: str) -> Optional[dict]:
        return entity_to_dict(self.shipments.find_unique("tracking_number", (tracking_number or "").strip() or None))

    def get_shipments_by_customer(self, customer_id: str) -> list[dict]:
        return self.get_shipments({"customer_id": customer_id})

    def get_shipments_by_status(self, status: ShipmentStatus | str) -> list[dict]:
        return self.get_shipments({"status": enum_value(ShipmentStatus, status, "status")})

    def get_pending_shipments(self) -> list[dict]:
        return self.get_shipments_by_status(ShipmentStatus.PENDING)

    def get_active_shipments(self) -> list[dict]:
        return self.get_shipments({"status": {"in": ACTIVE_SHIPMENT_STATUSES}})

    def get_overdue_shipments(self, now: Optional[datetime] = None) -> list[dict]:
        """Shipments whose estimated delivery has passed and that are not delivered."""
        cutoff = to_utc_naive(now) if now else utcnow()
        return self.get_shipments({"estimated_delivery": {"lt": cutoff}, "status": {"not": DELIVERED}})

    def search_shipments(self, query: str) -> list[dict]:
        term = (query or "").strip()
        if not term:
            return self.get_shipments()
        return self.get_shipments(
            {
                "OR": [
                    {"tracking_number": {"icontains": term}},
                    {"origin": {"icontains": term}},
                    {"destination": {"icontains": term}},
                    {"carrier": {"icontains": term}},
                    {"notes": {"icontains": term}},
                ]
            }
        )

    def count_shipments(self, where: Mapping[str, Any] | None = None) -> int:
        return self.shipments.count(where)

    # -------------------------------------- writes --------------------------------------
    def add_shipment(self, data: Mapping[str, Any]) -> dict:
        """Create a shipment. Raises ValidationError, or ConflictError for a taken tracking number."""
        payload = validate_payload(EntityKind.SHIPMENT, data)
        payload.setdefault("status", ShipmentStatus.PENDING.value)
        if payload["status"] == DELIVERED and payload.get("actual_delivery") is None:
            payload["actual_delivery"] = utcnow()
        entity = self.shipments.create(_to_columns(payload))
        self.logger.info("Shipment %s created (%s)", entity.id, entity.tracking_number)
        return entity_to_dict(entity)

    def update_shipment(self, shipment_id: str, updates: Mapping[str, Any]) -> Optional[dict]:
        self._reset()
        payload = validate_payload(EntityKind.SHIPMENT, updates, partial=True)
        current = self.shipments.find_by_id(shipment_id)
        if not current:
            self._not_found(shipment_id)
            return None
        if payload.get("status") == DELIVERED and "actual_delivery" not in payload and current.actual_delivery is None:
            payload["actual_delivery"] = utcnow()
        entity = self._guard(
            "update",
            shipment_id,
            lambda: self.shipments.update(shipment_id, _to_columns(payload)),
            None,
        )
        if entity is None and self.last_error is None:
            self._not_found(shipment_id)
        return entity_to_dict(entity)

    def update_shipment_status(
        self,
        shipment_id: str,
        status: ShipmentStatus | str,
        notes: Optional[str] = None,
    ) -> Optional[dict]:
        updates: dict = {"status": status}
        if notes:
            updates["notes"] = notes
        return self.update_shipment(shipment_id, updates)

    def delete_shipment(self, shipment_id: str) -> bool:
        self._reset()
        deleted = self._guard("delete", shipment_id, lambda: self.shipments.delete(shipment_id), False)
        if not deleted and self.last_error is None:
            self._not_found(shipment_id)
        return deleted
