"""
Cross-entity summaries and the plain-text daily report.

Everything here is read-only: it composes the entity managers and never
writes. "Urgent" means priority URGENT and not completed, "due today" is the
caller's local calendar day.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from bizops.core.config import get_settings
from bizops.core.utils import local_day_bounds, to_local, to_utc_naive, utcnow
from bizops.db.session import Database
from bizops.domain.enums import ShipmentStatus

from .customer_service import CustomerManager
from .order_service import CANCELLED, OrderManager
from .shipment_service import ShipmentManager
from .task_service import OPEN, TaskManager

REPORT_WIDTH = 50


@dataclass
class DashboardData:
    pending_shipments: int
    urgent_tasks: int
    customers_needing_attention: int
    recent_orders: int
    total_revenue: float


@dataclass
class TasksSummary:
    total: int
    incomplete: int
    urgent: int
    overdue: int
    today: int
    completed: int


@dataclass
class ShipmentsSummary:
    total: int
    pending: int
    overdue: int
    status_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class CustomersSummary:
    total: int
    needing_attention: int
    total_spent: float
    average_order_value: float
    industries: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)


@dataclass
class AttentionItems:
    customers_needing_attention: list[dict] = field(default_factory=list)
    urgent_tasks: list[dict] = field(default_factory=list)
    overdue_tasks: list[dict] = field(default_factory=list)
    overdue_shipments: list[dict] = field(default_factory=list)


@dataclass
class DailyTasks:
    urgent: list[dict] = field(default_factory=list)
    overdue: list[dict] = field(default_factory=list)
    today: list[dict] = field(default_factory=list)
    customer_follow_ups: list[dict] = field(default_factory=list)
    shipment_tasks: list[dict] = field(default_factory=list)


def _unique(values) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    return list(seen)


class ReportService:
    def __init__(
        self,
        database: Database,
        *,
        customers: Optional[CustomerManager] = None,
        tasks: Optional[TaskManager] = None,
        shipments: Optional[ShipmentManager] = None,
        orders: Optional[OrderManager] = None,
    ) -> None:
        self.database = database
        self.customers = customers or CustomerManager(database)
        self.tasks = tasks or TaskManager(database)
        self.shipments = shipments or ShipmentManager(database)
        self.orders = orders or OrderManager(database)
        self.window_days = get_settings().recent_window_days

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return to_utc_naive(now) if now else utcnow()

    def get_dashboard_data(self, now: Optional[datetime] = None) -> DashboardData:
        now = self._now(now)
        return DashboardData(
            pending_shipments=self.shipments.count_shipments({"status": ShipmentStatus.PENDING.value}),
            urgent_tasks=len(self.tasks.get_urgent_tasks()),
            customers_needing_attention=self.customers.count_customers({"needs_attention": True}),
            recent_orders=len(self.orders.get_recent_orders(self.window_days, now=now)),
            total_revenue=self.orders.get_total_revenue(self.window_days, now=now),
        )

    def get_tasks_summary(self, now: Optional[datetime] = None) -> TasksSummary:
        total = self.tasks.count_tasks()
        incomplete = self.tasks.count_tasks(OPEN)
        return TasksSummary(
            total=total,
            incomplete=incomplete,
            urgent=len(self.tasks.get_urgent_tasks()),
            overdue=len(self.tasks.get_overdue_tasks(self._now(now))),
            today=len(self.tasks.get_todays_tasks(now)),
            completed=total - incomplete,
        )

    def get_shipments_summary(self, now: Optional[datetime] = None) -> ShipmentsSummary:
        shipments = self.shipments.get_shipments()
        status_counts: dict[str, int] = {}
        for shipment in shipments:
            status_counts[shipment["status"]] = status_counts.get(shipment["status"], 0) + 1
        return ShipmentsSummary(
            total=len(shipments),
            pending=status_counts.get(ShipmentStatus.PENDING.value, 0),
            overdue=len(self.shipments.get_overdue_shipments(self._now(now))),
            status_counts=status_counts,
        )

    def get_customers_summary(self) -> CustomersSummary:
        customers = self.customers.get_customers()
        billable = self.orders.count_orders({"status": {"not": CANCELLED}})
        total_spent = self.orders.get_total_revenue()
        return CustomersSummary(
            total=len(customers),
            needing_attention=sum(1 for c in customers if c["needs_attention"]),
            total_spent=total_spent,
            average_order_value=round(total_spent / billable, 2) if billable else 0.0,
            industries=_unique(c["industry"] for c in customers),
            tags=_unique(tag for c in customers for tag in c["tags"]),
            countries=_unique(c["country"] for c in customers),
        )

    def get_attention_items(self, now: Optional[datetime] = None) -> AttentionItems:
        now = self._now(now)
        return AttentionItems(
            customers_needing_attention=self.customers.get_customers_needing_attention(),
            urgent_tasks=self.tasks.get_urgent_tasks(),
            overdue_tasks=self.tasks.get_overdue_tasks(now),
            overdue_shipments=self.shipments.get_overdue_shipments(now),
        )

    def get_personalized_daily_tasks(self, now: Optional[datetime] = None) -> DailyTasks:
        """Open tasks grouped for a working day; overdue means due before today started."""
        start, end = local_day_bounds(now)
        return DailyTasks(
            urgent=self.tasks.get_urgent_tasks(),
            overdue=self.tasks.get_tasks({"due_date": {"lt": start}, **OPEN}),
            today=self.tasks.get_tasks_due_between(start, end),
            customer_follow_ups=self.tasks.get_tasks({"customer_id": {"not": None}, **OPEN}),
            shipment_tasks=self.tasks.get_tasks({"shipment_id": {"not": None}, **OPEN}),
        )

    def generate_daily_report(self, now: Optional[datetime] = None) -> str:
        dashboard = self.get_dashboard_data(now)
        tasks = self.get_tasks_summary(now)
        shipments = self.get_shipments_summary(now)
        attention = self.get_attention_items(now)
        report_date = to_local(now).date().isoformat()

        lines = [
            f"DAILY BUSINESS REPORT - {report_date}",
            "=" * REPORT_WIDTH,
            "",
            f"REVENUE: ${dashboard.total_revenue:.2f} (Last {self.window_days} days)",
            f"ORDERS: {dashboard.recent_orders} new orders (Last {self.window_days} days)",
            "",
            "TASKS OVERVIEW:",
            f"  - Total: {tasks.total} | Incomplete: {tasks.incomplete}",
            f"  - Urgent: {tasks.urgent} | Overdue: {tasks.overdue}",
            f"  - Due Today: {tasks.today}",
            "",
            "SHIPMENTS OVERVIEW:",
            f"  - Total: {shipments.total} | Pending: {shipments.pending}",
            f"  - Overdue: {shipments.overdue}",
        ]
        if shipments.status_counts:
            breakdown = ", ".join(f"{status}: {count}" for status, count in sorted(shipments.status_counts.items()))
            lines.append(f"  - By status: {breakdown}")
        lines += [
            "",
            "ITEMS NEEDING ATTENTION:",
            f"  - Customers: {len(attention.customers_needing_attention)}",
            f"  - Urgent Tasks: {len(attention.urgent_tasks)}",
            f"  - Overdue Tasks: {len(attention.overdue_tasks)}",
            f"  - Overdue Shipments: {len(attention.overdue_shipments)}",
            "",
        ]
        if attention.urgent_tasks:
            lines.append("URGENT TASKS:")
            lines += [f"  - {task['title']}" for task in attention.urgent_tasks]
            lines.append("")
        if attention.customers_needing_attention:
            lines.append("CUSTOMERS NEEDING ATTENTION:")
            lines += [f"  - {c['name']} ({c['email']})" for c in attention.customers_needing_attention]
            lines.append("")
        return "\n".join(lines)
