"""Order use cases: orders with items, shipment links, search and revenue."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from bizops.core.utils import days_ago, to_utc_naive
from bizops.db.models import Order, OrderItem
from bizops.db.session import Database
from bizops.domain.enums import EntityKind, OrderStatus
from bizops.domain.errors import FieldError, ValidationError
from bizops.domain.validation import fill_item_total, validate_payload
from bizops.repositories import EntityStore

from .base import BaseManager, enum_value
from .serializers import entities_to_dicts, entity_to_dict

ORDER_RELATIONS = ("customer", "items", "tasks", "shipments")
CANCELLED = OrderStatus.CANCELLED.value


class OrderManager(BaseManager):
    entity_name = "order"

    def __init__(self, database: Database) -> None:
        super().__init__(database)
        self.orders: EntityStore[Order] = EntityStore(database, Order)
        self.items: EntityStore[OrderItem] = EntityStore(database, OrderItem)

    # -------------------------------------- reads --------------------------------------
    def get_orders(self, where: Mapping[str, Any] | None = None) -> list[dict]:
        return entities_to_dicts(self.orders.find_all(where, order_by="order_date"))

    def get_orders_with_relations(self) -> list[dict]:
        return entities_to_dicts(self.orders.find_all(include=ORDER_RELATIONS, order_by="order_date"))

    def get_order_by_id(self, order_id: str) -> Optional[dict]:
        return entity_to_dict(self.orders.find_by_id(order_id, include=("items",)))

    def get_order_with_relations(self, order_id: str) -> Optional[dict]:
        return entity_to_dict(self.orders.find_by_id(order_id, include=ORDER_RELATIONS))

    def get_order_by_number(self, order_number: str) -> Optional[dict]:
        return entity_to_dict(
            self.orders.find_unique("order_number", (order_number or "").strip() or None, include=("items",))
        )

    def get_orders_by_customer(self, customer_id: str) -> list[dict]:
        return self.get_orders({"customer_id": customer_id})

    def get_orders_by_status(self, status: OrderStatus | str) -> list[dict]:
        return self.get_orders({"status": enum_value(OrderStatus, status, "status")})

    def get_recent_orders(self, days: int = 7, now: Optional[datetime] = None) -> list[dict]:
        return self.get_orders({"order_date": {"gte": days_ago(days, to_utc_naive(now))}})

    def get_orders_by_date_range(self, start: datetime, end: datetime) -> list[dict]:
        """Orders dated within ``[start, end]``."""
        return self.get_orders({"order_date": {"gte": to_utc_naive(start), "lte": to_utc_naive(end)}})

    def count_orders(self, where: Mapping[str, Any] | None = None) -> int:
        return self.orders.count(where)

    def get_total_revenue(self, days: Optional[int] = None, now: Optional[datetime] = None) -> float:
        """Sum of ``total_amount`` over non-cancelled orders, optionally in the trailing ``days``."""
        where: dict = {"status": {"not": CANCELLED}}
        if days:
            where["order_date"] = {"gte": days_ago(days, to_utc_naive(now))}
        return round(self.orders.sum("total_amount", where), 2)

    def search_orders(self, query: str) -> list[dict]:
        """
        Match order number and notes, then item product name/description.
        Orders matched by both appear once; an empty query returns all.
        """
        term = (query or "").strip()
        if not term:
            return entities_to_dicts(self.orders.find_all(include=("items",), order_by="order_date"))
        by_order = self.orders.find_all(
            {"OR": [{"order_number": {"icontains": term}}, {"notes": {"icontains": term}}]},
            include=("items",),
            order_by="order_date",
        )
        by_items = self.orders.find_all(
            {
                "items": {
                    "some": {
                        "OR": [
                            {"product_name": {"icontains": term}},
                            {"description": {"icontains": term}},
                        ]
                    }
                }
            },
            include=("items",),
            order_by="order_date",
        )
        seen: set[str] = set()
        results = []
        for entity in [*by_order, *by_items]:
            if entity.id not in seen:
                seen.add(entity.id)
                results.append(entity_to_dict(entity))
        return results

    # -------------------------------------- writes --------------------------------------
    def add_order(self, data: Mapping[str, Any]) -> dict:
        """
        Create an order and its nested ``items`` in one session.

        ``total_amount`` defaults to the sum of the item totals.
        """
        payload = validate_payload(EntityKind.ORDER, data)
        items = [fill_item_total(item) for item in payload.pop("items", None) or []]
        payload.setdefault("status", OrderStatus.PENDING.value)
        if payload.get("total_amount") is None:
            payload["total_amount"] = round(sum(item["total_price"] for item in items), 2)
        entity = self.orders.create(payload, related={"items": items}, include=("items",))
        self.logger.info("Order %s created (%s, %d item(s))", entity.id, entity.order_number, len(items))
        return entity_to_dict(entity)

    def update_order(self, order_id: str, updates: Mapping[str, Any]) -> Optional[dict]:
        self._reset()
        payload = validate_payload(EntityKind.ORDER, updates, partial=True)
        if "items" in payload:
            raise ValidationError(
                [FieldError("items", "items are managed with add_item_to_order/remove_item_from_order")],
                entity=self.entity_name,
            )
        entity = self._guard(
            "update",
            order_id,
            lambda: self.orders.update(order_id, payload, include=("items",)),
            None,
        )
        if entity is None and self.last_error is None:
            self._not_found(order_id)
        return entity_to_dict(entity)

    def update_order_status(self, order_id: str, status: OrderStatus | str) -> Optional[dict]:
        return self.update_order(order_id, {"status": status})

    def delete_order(self, order_id: str) -> bool:
        self._reset()
        deleted = self._guard("delete", order_id, lambda: self.orders.delete(order_id), False)
        if not deleted and self.last_error is None:
            self._not_found(order_id)
        return deleted

    # -------------------------------------- items --------------------------------------
    def add_item_to_order(
        self,
        order_id: str,
        item: Mapping[str, Any],
        *,
        update_total: bool = True,
    ) -> Optional[dict]:
        """Add an item; with ``update_total`` its total is added to the order amount."""
        self._reset()
        payload = fill_item_total(validate_payload(EntityKind.ORDER_ITEM, {**dict(item), "order_id": order_id}))
        order = self.orders.find_by_id(order_id)
        if not order:
            self._not_found(order_id)
            return None
        created = self._guard("add item to", order_id, lambda: self.items.create(payload), None)
        if created is not None and update_total:
            new_total = round((order.total_amount or 0.0) + created.total_price, 2)
            self._guard("update total of", order_id, lambda: self.orders.update(order_id, {"total_amount": new_total}), None)
        return entity_to_dict(created)

    def remove_item_from_order(self, order_id: str, item_id: str, *, update_total: bool = True) -> bool:
        self._reset()
        item = self.items.find_by_id(item_id)
        if not item or item.order_id != order_id:
            self._not_found(item_id, "order item")
            return False
        deleted = self._guard("remove item from", order_id, lambda: self.items.delete(item_id), False)
        if deleted and update_total:
            order = self.orders.find_by_id(order_id)
            if order:
                new_total = round(max(0.0, (order.total_amount or 0.0) - item.total_price), 2)
                self._guard("update total of", order_id, lambda: self.orders.update(order_id, {"total_amount": new_total}), None)
        return deleted

    def recalculate_order_total(self, order_id: str) -> Optional[dict]:
        """Set ``total_amount`` to the sum of the order's item totals."""
        self._reset()
        if not self.orders.exists(order_id):
            self._not_found(order_id)
            return None
        total = round(self.items.sum("total_price", {"order_id": order_id}), 2)
        entity = self._guard(
            "recalculate",
            order_id,
            lambda: self.orders.update(order_id, {"total_amount": total}, include=("items",)),
            None,
        )
        return entity_to_dict(entity)

    # -------------------------------------- shipments --------------------------------------
    def link_order_to_shipment(self, order_id: str, shipment_id: str) -> bool:
        """Link an order to a shipment; False when either id does not resolve."""
        self._reset()
        linked = self._guard("link", order_id, lambda: self.orders.link(order_id, "shipments", shipment_id), False)
        if linked is None:
            self._not_found(order_id)
            return False
        if linked is False and self.last_error is None:
            self._not_found(shipment_id, "shipment")
        return bool(linked)
