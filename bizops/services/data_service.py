"""
Whole-dataset utilities: JSON export/import, backups, stats and wipe.

The export document is keyed by table name; each table is a list of row
objects with datetimes in ISO format. Import merges rows by primary key so
re-importing the same document is harmless.
"""
from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
import shutil
from typing import Any, Optional

from sqlalchemy import DateTime, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bizops.core.config import get_settings
from bizops.db.models import MODELS_BY_TABLE, order_shipments
from bizops.db.session import Database
from bizops.domain.errors import ConflictError, NotFoundError, StorageError
from bizops.repositories import EntityStore

logger = logging.getLogger(__name__)

LINK_TABLE = order_shipments.name
EXPORT_VERSION = 1


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S-%f")


def _row_to_json(entity: Any) -> dict:
    row = {}
    for column in entity.__table__.columns:
        value = getattr(entity, column.key)
        row[column.key] = value.isoformat() if isinstance(value, datetime) else value
    return row


def _row_from_json(model, row: dict) -> dict:
    values = {}
    for column in model.__table__.columns:
        if column.key not in row:
            continue
        value = row[column.key]
        if isinstance(column.type, DateTime) and isinstance(value, str):
            value = datetime.fromisoformat(value)
        values[column.key] = value
    return values


class DataService:
    def __init__(self, database: Database, data_dir: Optional[Path | str] = None) -> None:
        self.database = database
        self.data_dir = Path(data_dir) if data_dir else get_settings().data_dir

    @property
    def backups_dir(self) -> Path:
        return self.data_dir / "backups"

    @property
    def exports_dir(self) -> Path:
        return self.data_dir / "exports"

    # -------------------------- export/import --------------------------
    def _snapshot(self) -> dict:
        document: dict[str, Any] = {"version": EXPORT_VERSION, "exported_at": datetime.now().astimezone().isoformat()}
        with self.database.session() as session:
            for table, model in MODELS_BY_TABLE.items():
                rows = session.execute(select(model)).scalars().all()
                document[table] = [_row_to_json(entity) for entity in rows]
            links = session.execute(select(order_shipments)).mappings().all()
            document[LINK_TABLE] = [dict(link) for link in links]
        return document

    def export_to_json(self, path: Optional[Path | str] = None) -> Path:
        target = Path(path) if path else self.exports_dir / f"export-{_timestamp()}.json"
        target.parent.mkdir(parents=True, exist_ok=True)
        document = self._snapshot()
        with target.open("w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
        logger.info("Exported data to %s", target)
        return target

    def import_from_json(self, path: Path | str) -> dict[str, int]:
        """Merge every table of an export document; returns rows merged per table."""
        source = Path(path)
        if not source.exists():
            raise NotFoundError(f"Import file not found: {source}")
        with source.open("r", encoding="utf-8") as f:
            document = json.load(f)

        counts: dict[str, int] = {}
        try:
            with self.database.session() as session:
                for table, model in MODELS_BY_TABLE.items():
                    rows = document.get(table) or []
                    for row in rows:
                        session.merge(model(**_row_from_json(model, row)))
                    counts[table] = len(rows)
                session.flush()
                existing = {
                    (link.order_id, link.shipment_id)
                    for link in session.execute(select(order_shipments)).all()
                }
                links = [
                    {"order_id": link["order_id"], "shipment_id": link["shipment_id"]}
                    for link in document.get(LINK_TABLE) or []
                    if (link["order_id"], link["shipment_id"]) not in existing
                ]
                if links:
                    session.execute(order_shipments.insert(), links)
                counts[LINK_TABLE] = len(links)
                session.commit()
        except IntegrityError as exc:
            raise ConflictError(f"Import of {source} conflicts with existing data: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Import of {source} failed: {exc}") from exc
        logger.info("Imported %s from %s", counts, source)
        return counts

    # -------------------------- backups --------------------------
    def _sqlite_file(self) -> Optional[Path]:
        if not self.database.is_sqlite:
            return None
        database = make_url(self.database.url).database
        if not database or database == ":memory:":
            return None
        return Path(database)

    def backup_data(self) -> Path:
        """Write ``backups/backup-<timestamp>/`` with a JSON export and the SQLite file if any."""
        folder = self.backups_dir / f"backup-{_timestamp()}"
        folder.mkdir(parents=True, exist_ok=False)
        self.export_to_json(folder / "data.json")
        db_file = self._sqlite_file()
        if db_file is not None and db_file.exists():
            try:
                shutil.copy2(db_file, folder / db_file.name)
            except OSError as exc:
                raise StorageError(f"Could not copy database file {db_file}: {exc}") from exc
        logger.info("Backup written to %s", folder)
        return folder

    def list_backups(self) -> list[str]:
        if not self.backups_dir.exists():
            return []
        names = [p.name for p in self.backups_dir.iterdir() if p.is_dir() and p.name.startswith("backup-")]
        return sorted(names, reverse=True)

    # -------------------------- stats/clear --------------------------
    def get_data_stats(self) -> dict[str, int]:
        return {table: EntityStore(self.database, model).count() for table, model in MODELS_BY_TABLE.items()}

    def clear_all_data(self) -> dict[str, int]:
        """Delete every row, children first. Returns rows removed per table."""
        removed: dict[str, int] = {}
        for table, model in reversed(list(MODELS_BY_TABLE.items())):
            removed[table] = EntityStore(self.database, model).delete_all()
        logger.warning("All data cleared: %s", removed)
        return removed
