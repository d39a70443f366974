"""
Shared fixtures: every test gets its own temporary SQLite database.
"""
from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

# keep the bizops package importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bizops.core import config as core_config
from bizops.db.session import Database


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Temporary SQLite file with the schema created; disposed on teardown so the file is not locked."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("BIZOPS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("FOLLOW_UP_DAYS", raising=False)
    monkeypatch.delenv("RECENT_WINDOW_DAYS", raising=False)
    # force settings to be re-read from the patched environment
    core_config.get_settings.cache_clear()

    database = Database().open()
    database.drop_all()
    database.create_all()

    yield database

    database.drop_all()
    database.close()
    core_config.get_settings.cache_clear()


@pytest.fixture()
def customer(temp_db):
    from bizops.services import CustomerManager

    return CustomerManager(temp_db).add_customer(
        {"name": "Acme Corp", "email": "ops@acme.test", "country": "USA", "tags": ["vip"], "industry": "Retail"}
    )


@pytest.fixture()
def tokyo_tz():
    """Run the test with the process local time set to Asia/Tokyo (UTC+9, no DST)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "Asia/Tokyo"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
