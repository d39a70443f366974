#!/usr/bin/env python3
"""
Print the daily business report, the grouped task list or search results.

Usage:
  python scripts/daily_report.py
  python scripts/daily_report.py --my-tasks
  python scripts/daily_report.py --search acme
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bizops.core.logging import configure_logging
from bizops.db.session import Database
from bizops.services import CustomerManager, OrderManager, ReportService, ShipmentManager, TaskManager


def _print_tasks(title: str, tasks: list[dict]) -> None:
    print(f"{title} ({len(tasks)}):")
    for task in tasks:
        due = task["due_date"].date().isoformat() if task.get("due_date") else "no due date"
        print(f"  - [{task['priority']}] {task['title']} ({task['status']}, {due})")


def print_my_tasks(report: ReportService) -> None:
    daily = report.get_personalized_daily_tasks()
    _print_tasks("Urgent", daily.urgent)
    _print_tasks("Overdue", daily.overdue)
    _print_tasks("Due today", daily.today)
    _print_tasks("Customer follow-ups", daily.customer_follow_ups)
    _print_tasks("Shipment tasks", daily.shipment_tasks)


def print_search(database: Database, query: str) -> None:
    customers = CustomerManager(database).search_customers(query)
    tasks = TaskManager(database).search_tasks(query)
    shipments = ShipmentManager(database).search_shipments(query)
    orders = OrderManager(database).search_orders(query)
    print(f"Customers ({len(customers)}):")
    for c in customers:
        print(f"  - {c['name']} <{c['email']}> {c.get('company') or ''}".rstrip())
    _print_tasks("Tasks", tasks)
    print(f"Shipments ({len(shipments)}):")
    for s in shipments:
        print(f"  - {s['tracking_number']} {s['origin']} -> {s['destination']} ({s['status']})")
    print(f"Orders ({len(orders)}):")
    for o in orders:
        print(f"  - {o['order_number']} ${o['total_amount']:.2f} ({o['status']})")


def main() -> None:
    ap = argparse.ArgumentParser(description="Daily business report")
    ap.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL or sqlite:///bizops.db)")
    group = ap.add_mutually_exclusive_group()
    group.add_argument("--my-tasks", action="store_true", help="grouped open tasks for today")
    group.add_argument("--search", metavar="QUERY", help="search customers, tasks, shipments and orders")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    configure_logging(verbose=args.verbose)
    with Database(args.database_url) as database:
        if database.health_check()["status"] != "healthy":
            raise SystemExit("Database is not reachable")
        database.create_all()
        if args.search is not None:
            print_search(database, args.search)
        elif args.my_tasks:
            print_my_tasks(ReportService(database))
        else:
            print(ReportService(database).generate_daily_report())


if __name__ == "__main__":
    main()
