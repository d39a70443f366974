#!/usr/bin/env python3
"""
Backup, export, import, inspect or wipe the dataset.

Usage:
  python scripts/manage_data.py backup
  python scripts/manage_data.py export [--output file.json]
  python scripts/manage_data.py import data/exports/export-....json
  python scripts/manage_data.py stats | list-backups
  python scripts/manage_data.py clear --yes
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
from bizops.domain.errors import BizOpsError
from bizops.services import DataService


def _print_counts(title: str, counts: dict[str, int]) -> None:
    print(title)
    for table, count in counts.items():
        print(f"  {table}: {count}")


def main() -> None:
    ap = argparse.ArgumentParser(description="Data management utilities")
    ap.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL or sqlite:///bizops.db)")
    ap.add_argument("--data-dir", help="base folder for backups/exports (default: BIZOPS_DATA_DIR or ./data)")
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("backup", help="write a timestamped backup folder")
    export = sub.add_parser("export", help="export every table to JSON")
    export.add_argument("--output", help="target file (default: <data-dir>/exports/export-<timestamp>.json)")
    imp = sub.add_parser("import", help="merge an export file into the database")
    imp.add_argument("path")
    sub.add_parser("stats", help="row count per table")
    sub.add_parser("list-backups", help="existing backups, newest first")
    clear = sub.add_parser("clear", help="delete every row")
    clear.add_argument("--yes", action="store_true", help="confirm the wipe")
    args = ap.parse_args()

    configure_logging()
    with Database(args.database_url) as database:
        database.create_all()
        service = DataService(database, args.data_dir)
        try:
            if args.command == "backup":
                print(f"OK: backup written to {service.backup_data()}")
            elif args.command == "export":
                print(f"OK: exported to {service.export_to_json(args.output)}")
            elif args.command == "import":
                _print_counts("OK: imported", service.import_from_json(args.path))
            elif args.command == "stats":
                _print_counts("Rows per table:", service.get_data_stats())
            elif args.command == "list-backups":
                backups = service.list_backups()
                if not backups:
                    print("No backups found")
                for name in backups:
                    print(name)
            elif args.command == "clear":
                if not args.yes:
                    raise SystemExit("Refusing to clear data without --yes")
                _print_counts("OK: removed", service.clear_all_data())
        except BizOpsError as exc:
            raise SystemExit(f"{args.command} failed: {exc}") from exc


if __name__ == "__main__":
    main()
