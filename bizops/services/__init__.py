"""
High-level use cases for bizops.

Each manager orchestrates EntityStore instances and the validator to
implement the business rules of one entity kind; ReportService and
DataService compose them. Scripts call these classes instead of touching
sessions directly.
"""

from .customer_service import CustomerManager
from .data_service import DataService
from .order_service import OrderManager
from .report_service import ReportService
from .shipment_service import ShipmentManager
from .task_service import TaskManager

__all__ = [
    "CustomerManager",
    "DataService",
    "OrderManager",
    "ReportService",
    "ShipmentManager",
    "TaskManager",
]
