import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from .db import get_session
from .errors import store_message
from .models import Board, Device, Room, System, SensorReading, CommandQueueEntry
from .utils import utcnow_iso

router = APIRouter(prefix="/api", tags=["diagnostics"])
log = logging.getLogger("homedash.diagnostics")

TABLES = {
    "boards": Board,
    "devices": Device,
    "rooms": Room,
    "systems": System,
    "sensor_readings": SensorReading,
    "command_queue": CommandQueueEntry,
}

def _sample(name: str, limit: int) -> list[dict]:
    # fresh session per table so one failing probe does not poison the rest
    with get_session() as session:
        return [r.model_dump() for r in session.exec(select(TABLES[name]).limit(limit)).all()]

@router.get("/test-connection")
def test_connection():
    results: dict[str, dict] = {}
    for name in TABLES:
        try:
            rows = _sample(name, 1)
            results[name] = {"exists": True, "sampleCount": len(rows)}
        except SQLAlchemyError as e:
            log.warning("table %s not reachable: %s", name, store_message(e))
            results[name] = {"exists": False, "error": store_message(e)}

    existing = [n for n, r in results.items() if r["exists"]]
    if not existing:
        return JSONResponse({
            "success": False,
            "error": "No accessible tables found",
            "details": "Could not access any of the expected tables. Database might be empty or credentials might be incorrect.",
            "tableTests": results,
        }, status_code=500)

    return {
        "success": True,
        "message": "Successfully connected to the database",
        "existingTables": existing,
        "tableDetails": results,
        "timestamp": utcnow_iso(),
    }

@router.get("/inspect-tables")
def inspect_tables():
    tables: dict[str, dict] = {}
    for name in TABLES:
        try:
            rows = _sample(name, 3)
        except SQLAlchemyError as e:
            tables[name] = {"error": store_message(e)}
            continue
        tables[name] = {
            "count": len(rows),
            "sampleData": rows,
            "columns": list(rows[0].keys()) if rows else [],
        }
    return {"success": True, "message": "Table inspection complete", "tables": tables, "timestamp": utcnow_iso()}
