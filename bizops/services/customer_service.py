"""
Customer use cases: CRUD, search, tag helpers and contacts.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from bizops.db.models import Contact, Customer, Order, Shipment
from bizops.db.session import Database
from bizops.domain.codec import decode_tags, encode_tags
from bizops.domain.enums import EntityKind
from bizops.domain.errors import ErrorKind
from bizops.domain.validation import validate_payload
from bizops.repositories import EntityStore

from .base import BaseManager
from .serializers import entities_to_dicts, entity_to_dict

CUSTOMER_RELATIONS = ("contacts", "tasks", "shipments", "orders.items")


def _to_columns(payload: dict) -> dict:
    values = dict(payload)
    if "tags" in values:
        values["tags"] = encode_tags(values["tags"])
    return values


class CustomerManager(BaseManager):
    """Customer and contact operations on top of EntityStore."""

    entity_name = "customer"

    def __init__(self, database: Database) -> None:
        super().__init__(database)
        self.customers: EntityStore[Customer] = EntityStore(database, Customer)
        self.contacts: EntityStore[Contact] = EntityStore(database, Contact)
        self.shipments: EntityStore[Shipment] = EntityStore(database, Shipment)
        self.orders: EntityStore[Order] = EntityStore(database, Order)

    # -------------------------------------- reads --------------------------------------
    def get_customers(self) -> list[dict]:
        return entities_to_dicts(self.customers.find_all())

    def get_customers_with_relations(self) -> list[dict]:
        return entities_to_dicts(self.customers.find_all(include=CUSTOMER_RELATIONS))

    def get_customer_by_id(self, customer_id: str) -> Optional[dict]:
        return entity_to_dict(self.customers.find_by_id(customer_id))

    def get_customer_by_email(self, email: str) -> Optional[dict]:
        return entity_to_dict(self.customers.find_unique("email", (email or "").strip() or None))

    def get_customer_with_relations(self, customer_id: str) -> Optional[dict]:
        return entity_to_dict(self.customers.find_by_id(customer_id, include=CUSTOMER_RELATIONS))

    def get_contacts(self, customer_id: str) -> list[dict]:
        return entities_to_dicts(self.contacts.find_all({"customer_id": customer_id}))

    def get_customers_needing_attention(self) -> list[dict]:
        return entities_to_dicts(self.customers.find_all({"needs_attention": True}))

    def count_customers(self, where: Mapping[str, Any] | None = None) -> int:
        return self.customers.count(where)

    # -------------------------------------- writes --------------------------------------
    def add_customer(self, data: Mapping[str, Any]) -> dict:
        """Create a customer. Raises ValidationError, or ConflictError for a taken email."""
        payload = validate_payload(EntityKind.CUSTOMER, data)
        payload.setdefault("needs_attention", False)
        entity = self.customers.create(_to_columns(payload))
        self.logger.info("Customer %s created (%s)", entity.id, entity.email)
        return entity_to_dict(entity)

    def update_customer(self, customer_id: str, updates: Mapping[str, Any]) -> Optional[dict]:
        self._reset()
        payload = validate_payload(EntityKind.CUSTOMER, updates, partial=True)
        entity = self._guard(
            "update",
            customer_id,
            lambda: self.customers.update(customer_id, _to_columns(payload)),
            None,
        )
        if entity is None and self.last_error is None:
            self._not_found(customer_id)
        return entity_to_dict(entity)

    def delete_customer(self, customer_id: str) -> bool:
        """
        Delete a customer together with its contacts.

        Tasks pointing at the customer are kept with the link cleared. The
        delete is refused while shipments or orders still reference it.
        """
        self._reset()
        if not self.customers.exists(customer_id):
            self._not_found(customer_id)
            return False
        shipments = self.shipments.count({"customer_id": customer_id})
        orders = self.orders.count({"customer_id": customer_id})
        if shipments or orders:
            self.logger.warning(
                "Refusing to delete customer %s: %d shipment(s), %d order(s) still reference it",
                customer_id,
                shipments,
                orders,
            )
            self._fail(
                ErrorKind.CONFLICT,
                f"customer {customer_id} still has shipments or orders",
                customer_id,
                shipments=shipments,
                orders=orders,
            )
            return False
        return self._guard("delete", customer_id, lambda: self.customers.delete(customer_id), False)

    def set_needs_attention(self, customer_id: str, flag: bool = True) -> Optional[dict]:
        return self.update_customer(customer_id, {"needs_attention": bool(flag)})

    # -------------------------------------- search/filters --------------------------------------
    def search_customers(self, query: str) -> list[dict]:
        """
        Case-insensitive match on name, email, company, country, industry,
        phone, the customer's contacts and its tags. An empty query returns all.
        """
        term = (query or "").strip()
        if not term:
            return self.get_customers()
        contact_match = {
            "OR": [
                {"name": {"icontains": term}},
                {"email": {"icontains": term}},
                {"phone": {"contains": term}},
                {"role": {"icontains": term}},
            ]
        }
        where = {
            "OR": [
                {"name": {"icontains": term}},
                {"email": {"icontains": term}},
                {"company": {"icontains": term}},
                {"phone": {"contains": term}},
                {"country": {"icontains": term}},
                {"industry": {"icontains": term}},
                {"contacts": {"some": contact_match}},
            ]
        }
        matched = {entity.id for entity in self.customers.find_all(where)}
        needle = term.lower()
        results = []
        for entity in self.customers.find_all():
            if entity.id in matched or any(needle in tag.lower() for tag in decode_tags(entity.tags)):
                results.append(entity_to_dict(entity))
        return results

    def filter_customers_by_tag(self, tag: str) -> list[dict]:
        return [c for c in self.get_customers() if tag in c["tags"]]

    def filter_customers_by_industry(self, industry: str) -> list[dict]:
        return entities_to_dicts(self.customers.find_all({"industry": industry}))

    def filter_customers_by_country(self, country: str) -> list[dict]:
        return entities_to_dicts(self.customers.find_all({"country": country}))

    # -------------------------------------- tags --------------------------------------
    def add_tag_to_customer(self, customer_id: str, tag: str) -> Optional[dict]:
        """Append ``tag`` unless it is already present (no-op then)."""
        self._reset()
        entity = self.customers.find_by_id(customer_id)
        if not entity:
            self._not_found(customer_id)
            return None
        tags = decode_tags(entity.tags)
        if tag in tags:
            self.logger.debug("Customer %s already tagged %r", customer_id, tag)
            return entity_to_dict(entity)
        tags.append(tag)
        return self.update_customer(customer_id, {"tags": tags})

    def remove_tag_from_customer(self, customer_id: str, tag: str) -> Optional[dict]:
        self._reset()
        entity = self.customers.find_by_id(customer_id)
        if not entity:
            self._not_found(customer_id)
            return None
        tags = decode_tags(entity.tags)
        if tag not in tags:
            return entity_to_dict(entity)
        return self.update_customer(customer_id, {"tags": [t for t in tags if t != tag]})

    # -------------------------------------- contacts --------------------------------------
    def add_contact_to_customer(self, customer_id: str, contact: Mapping[str, Any]) -> Optional[dict]:
        self._reset()
        payload = validate_payload(EntityKind.CONTACT, {**dict(contact), "customer_id": customer_id})
        if not self.customers.exists(customer_id):
            self._not_found(customer_id)
            return None
        payload.setdefault("is_primary", False)
        entity = self._guard("add contact to", customer_id, lambda: self.contacts.create(payload), None)
        return entity_to_dict(entity)

    def remove_contact_from_customer(self, customer_id: str, contact_id: str) -> bool:
        self._reset()
        contact = self.contacts.find_by_id(contact_id)
        if not contact or contact.customer_id != customer_id:
            self._not_found(contact_id, "contact")
            return False
        return self._guard("remove contact from", customer_id, lambda: self.contacts.delete(contact_id), False)
