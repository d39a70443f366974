"""
The sample dataset loads cleanly through the managers.
"""
from __future__ import annotations

import importlib.util
from pathlib import Path

from bizops.services import DataService, OrderManager, ReportService

SEED_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "seed_data.py"


def _load_seed_module():
    spec = importlib.util.spec_from_file_location("seed_data", SEED_SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seed_populates_every_table(temp_db, tmp_path):
    created = _load_seed_module().seed(temp_db)
    stats = DataService(temp_db, tmp_path).get_data_stats()
    assert stats == created == {
        "customers": 2,
        "contacts": 3,
        "orders": 2,
        "order_items": 4,
        "shipments": 2,
        "tasks": 4,
    }

    orders = OrderManager(temp_db)
    assert orders.get_order_by_number("ORD-2025-001")["total_amount"] == 2500.0
    assert orders.get_order_by_number("ORD-2025-002")["total_amount"] == 5000.0
    assert orders.get_total_revenue() == 7500.0
    assert [o["order_number"] for o in orders.search_orders("widget")] == ["ORD-2025-002"]

    report = ReportService(temp_db).generate_daily_report()
    assert report.startswith("DAILY BUSINESS REPORT - ")
