"""bizops: customers, tasks, shipments and orders on top of SQLAlchemy."""

__version__ = "0.1.0"
