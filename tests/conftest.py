"""
Shared pytest fixtures for the Homedash API tests.

The store is a SQLite file under tests/tmp_data; every test using `client`
starts from empty tables.
"""
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

# ─────────────────────────── ENVIRONMENT ───────────────────────────

TEST_ROOT = Path(__file__).resolve().parent
DATA_DIR = TEST_ROOT / "tmp_data"
DATA_DIR.mkdir(parents=True, exist_ok=True)
DB_FILE = DATA_DIR / "homedash.db"

os.environ["DATABASE_URL"] = f"sqlite:///{DB_FILE}"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("COMMAND_PRIORITY_ORDER", "desc")

sys.path.insert(0, str(TEST_ROOT.parent))

from sqlalchemy import delete  # noqa: E402

from homedash.db import engine, init_db  # noqa: E402
from homedash.main import app  # noqa: E402
from homedash.models import (  # noqa: E402
    Board, Room, System, Device, SensorReading, CommandQueueEntry,
)

# children first, foreign keys are enforced
TABLES = [CommandQueueEntry, SensorReading, Device, System, Room, Board]

def clear_all_test_data():
    init_db()
    with engine.begin() as conn:
        for model in TABLES:
            conn.execute(delete(model.__table__))

@pytest.fixture
def client():
    """Function-scoped client on an empty store."""
    clear_all_test_data()
    with TestClient(app) as c:
        yield c

# ─────────────────────────── FACTORIES ───────────────────────────

def create_board(client, name: str = "ESP32 Main", **fields) -> Dict[str, Any]:
    resp = client.post("/api/boards", json={"name": name, "board_type": "esp32", **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()

def create_system(client, board_id: str, type: str, name: Optional[str] = None, **fields) -> Dict[str, Any]:
    resp = client.post("/api/systems", json={
        "name": name or type.replace("_", " ").title(), "type": type, "board_id": board_id, **fields,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()

_next_pin = {"pin": 0}

def create_device(client, board_id: str, type: str, name: Optional[str] = None,
                  pin_number: Optional[int] = None, **fields) -> Dict[str, Any]:
    if pin_number is None:
        _next_pin["pin"] += 1
        pin_number = _next_pin["pin"]
    resp = client.post("/api/devices", json={
        "board_id": board_id, "name": name or type, "type": type, "pin_number": pin_number, **fields,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()

def pending_commands(client, **params):
    resp = client.get("/api/commands", params=params)
    assert resp.status_code == 200, resp.text
    return resp.json()

def as_utc(stamp: str) -> datetime:
    """Parse an API timestamp; naive values are read as UTC."""
    parsed = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    return parsed.replace(tzinfo=timezone.utc) if parsed.tzinfo is None else parsed

class BrokenSession:
    """Stands in for a session whose store is unreachable."""

    def __init__(self, message: str = "connection refused"):
        self.message = message

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def _fail(self, *args, **kwargs):
        from sqlalchemy.exc import OperationalError
        raise OperationalError("SELECT 1", {}, Exception(self.message))

    exec = get = add = commit = _fail
