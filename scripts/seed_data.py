#!/usr/bin/env python3
"""
Load a small sample dataset (customers, contacts, orders, shipments, tasks).

Usage:
  python scripts/seed_data.py [--database-url sqlite:///bizops.db] [--force]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# keep the bizops package importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bizops.core.logging import configure_logging
from bizops.db.session import Database
from bizops.domain.errors import BizOpsError
from bizops.services import CustomerManager, OrderManager, ShipmentManager, TaskManager

CUSTOMERS = [
    {
        "name": "John Smith",
        "email": "john.smith@techcorp.com",
        "phone": "+1-555-0101",
        "company": "TechCorp Solutions",
        "address": "123 Tech Street",
        "city": "San Francisco",
        "state": "CA",
        "zip_code": "94102",
        "country": "US",
        "website": "https://techcorp.com",
        "vat_number": "US123456789",
        "industry": "Technology",
        "tags": ["premium", "enterprise", "tech"],
        "notes": "Premium enterprise customer with high volume requirements",
    },
    {
        "name": "Sarah Johnson",
        "email": "sarah.johnson@retailplus.com",
        "phone": "+1-555-0102",
        "company": "RetailPlus Inc",
        "address": "456 Commerce Ave",
        "city": "New York",
        "state": "NY",
        "zip_code": "10001",
        "country": "US",
        "website": "https://retailplus.com",
        "industry": "Retail",
        "tags": ["retail", "volume"],
        "notes": "Large retail chain with seasonal volume spikes",
    },
]

CONTACTS = [
    (0, {"name": "John Smith", "email": "john.smith@techcorp.com", "phone": "+1-555-0101", "role": "CEO", "is_primary": True}),
    (0, {"name": "Jane Doe", "email": "jane.doe@techcorp.com", "phone": "+1-555-0103", "role": "CTO"}),
    (1, {"name": "Sarah Johnson", "email": "sarah.johnson@retailplus.com", "phone": "+1-555-0102", "role": "Operations Manager", "is_primary": True}),
]

ORDERS = [
    (
        0,
        {
            "order_number": "ORD-2025-001",
            "status": "PROCESSING",
            "order_date": "2025-01-15",
            "due_date": "2025-02-15",
            "notes": "Rush order for Q1 deployment",
            "items": [
                {"product_name": "Enterprise Software License", "description": "Annual enterprise license for 100 users", "quantity": 1, "unit_price": 2000.00},
                {"product_name": "Professional Services", "description": "Setup and configuration services", "quantity": 10, "unit_price": 50.00},
            ],
        },
    ),
    (
        1,
        {
            "order_number": "ORD-2025-002",
            "status": "CONFIRMED",
            "order_date": "2025-01-20",
            "due_date": "2025-03-01",
            "notes": "Seasonal inventory restock",
            "items": [
                {"product_name": "Retail Widget Pro", "description": "Premium retail widgets for stores", "quantity": 100, "unit_price": 25.00},
                {"product_name": "Widget Accessories", "description": "Essential accessories for retail widgets", "quantity": 200, "unit_price": 12.50},
            ],
        },
    ),
]

SHIPMENTS = [
    (
        0,
        {
            "tracking_number": "TRK-2025-001",
            "origin": "San Francisco, CA",
            "destination": "San Francisco, CA",
            "carrier": "FedEx",
            "status": "IN_TRANSIT",
            "estimated_delivery": "2025-02-01",
            "weight": 5.5,
            "dimensions": {"length": 12, "width": 8, "height": 6},
            "value": 2500.00,
            "insurance": 100.00,
            "notes": "Handle with care - fragile contents",
        },
    ),
    (
        1,
        {
            "tracking_number": "TRK-2025-002",
            "origin": "Los Angeles, CA",
            "destination": "New York, NY",
            "carrier": "UPS",
            "status": "PENDING",
            "estimated_delivery": "2025-02-28",
            "weight": 150.0,
            "dimensions": {"length": 48, "width": 36, "height": 24},
            "value": 5000.00,
            "insurance": 250.00,
            "notes": "Bulk shipment - multiple packages",
        },
    ),
]

# (customer idx, order idx, shipment idx, payload)
TASKS = [
    (0, 0, None, {
        "title": "Configure enterprise software",
        "description": "Set up and configure the enterprise software for TechCorp",
        "priority": "HIGH",
        "status": "IN_PROGRESS",
        "due_date": "2025-02-01",
        "assigned_to": "Tech Team Lead",
        "tags": ["setup", "configuration", "enterprise"],
        "estimated_hours": 20.0,
        "actual_hours": 8.0,
    }),
    (0, None, 0, {
        "title": "Prepare shipment documentation",
        "description": "Generate all required shipping documents and labels",
        "priority": "MEDIUM",
        "status": "PENDING",
        "due_date": "2025-01-30",
        "assigned_to": "Shipping Coordinator",
        "tags": ["shipping", "documentation"],
        "estimated_hours": 2.0,
    }),
    (1, 1, None, {
        "title": "Quality check for retail widgets",
        "description": "Perform quality assurance on retail widget order",
        "priority": "HIGH",
        "status": "PENDING",
        "due_date": "2025-02-20",
        "assigned_to": "QA Team",
        "tags": ["quality", "inspection", "retail"],
        "estimated_hours": 15.0,
    }),
    (1, None, 1, {
        "title": "Follow up on delivery",
        "description": "Contact customer to confirm delivery and satisfaction",
        "priority": "LOW",
        "status": "PENDING",
        "due_date": "2025-03-01",
        "assigned_to": "Customer Success",
        "tags": ["follow-up", "customer-service"],
        "estimated_hours": 1.0,
    }),
]


def seed(database: Database) -> dict[str, int]:
    customers = CustomerManager(database)
    orders = OrderManager(database)
    shipments = ShipmentManager(database)
    tasks = TaskManager(database)

    customer_ids = [customers.add_customer(data)["id"] for data in CUSTOMERS]
    for idx, contact in CONTACTS:
        customers.add_contact_to_customer(customer_ids[idx], contact)
    order_ids = [orders.add_order({**data, "customer_id": customer_ids[idx]})["id"] for idx, data in ORDERS]
    shipment_ids = [
        shipments.add_shipment({**data, "customer_id": customer_ids[idx]})["id"] for idx, data in SHIPMENTS
    ]
    orders.link_order_to_shipment(order_ids[0], shipment_ids[0])
    for customer_idx, order_idx, shipment_idx, data in TASKS:
        tasks.add_task(
            {
                **data,
                "customer_id": customer_ids[customer_idx],
                "order_id": order_ids[order_idx] if order_idx is not None else None,
                "shipment_id": shipment_ids[shipment_idx] if shipment_idx is not None else None,
            }
        )
    return {
        "customers": len(CUSTOMERS),
        "contacts": len(CONTACTS),
        "orders": len(ORDERS),
        "order_items": sum(len(data["items"]) for _, data in ORDERS),
        "shipments": len(SHIPMENTS),
        "tasks": len(TASKS),
    }


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed the database with sample data")
    ap.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL or sqlite:///bizops.db)")
    ap.add_argument("--force", action="store_true", help="seed even if customers already exist")
    args = ap.parse_args()

    configure_logging()
    with Database(args.database_url) as database:
        database.create_all()
        if not args.force and CustomerManager(database).count_customers():
            raise SystemExit("Database already has customers; use --force to seed anyway")
        try:
            created = seed(database)
        except BizOpsError as exc:
            raise SystemExit(f"Seed failed: {exc}") from exc

    print("OK: seed completed")
    for table, count in created.items():
        print(f"  - {count} {table}")


if __name__ == "__main__":
    main()
