import logging
from typing import Any, Optional

from fastapi import APIRouter, Body
from sqlalchemy import and_, func
from sqlmodel import select

from .db import get_session
from .errors import ValidationError, store_step
from .models import SensorReading
from .serializers import reading_out
from .utils import is_missing

router = APIRouter(prefix="/api/sensors", tags=["sensors"])
log = logging.getLogger("homedash.sensors")

def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

@router.get("/latest")
def latest_per_device():
    """Most recent reading for every device that has reported one."""
    newest = (
        select(SensorReading.device_id, func.max(SensorReading.timestamp).label("ts"))
        .group_by(SensorReading.device_id)
        .subquery()
    )
    stmt = (
        select(SensorReading)
        .join(newest, and_(SensorReading.device_id == newest.c.device_id,
                           SensorReading.timestamp == newest.c.ts))
        .order_by(SensorReading.timestamp.desc(), SensorReading.id.desc())
    )
    with get_session() as session, store_step("Failed to fetch sensor readings from database"):
        latest: dict[str, SensorReading] = {}
        for r in session.exec(stmt).all():
            # equal timestamps on one device: first row has the highest id
            latest.setdefault(r.device_id, r)
        return [reading_out(session, r) for r in latest.values()]

@router.post("/latest", status_code=201)
def record_reading(body: dict[str, Any] = Body(...)):
    # older firmware posts `reading_value`
    raw = body.get("reading_value")
    if raw is None:
        raw = body.get("value")
    missing = [f for f in ("device_id", "sensor_type") if is_missing(body.get(f))]
    if is_missing(raw):
        missing.append("value (or reading_value)")
    if missing:
        noun = "field" if len(missing) == 1 else "fields"
        raise ValidationError(f"Missing required {noun}: {', '.join(missing)}")
    value = _number(raw)
    if value is None:
        raise ValidationError("value must be numeric", details=f"got {raw!r}")

    with get_session() as session:
        reading = SensorReading(
            device_id=body["device_id"],
            sensor_type=body["sensor_type"],
            value=value,
            unit=body.get("unit") or None,
        )
        session.add(reading)
        session.commit()
        session.refresh(reading)
        return reading_out(session, reading)

@router.post("/batch", status_code=201)
def record_batch(body: dict[str, Any] = Body(...)):
    readings = body.get("readings")
    if not isinstance(readings, list) or not readings:
        raise ValidationError("Missing required field: readings (array)")

    valid: list[SensorReading] = []
    for item in readings:
        if not isinstance(item, dict):
            continue
        value = _number(item.get("value"))
        if is_missing(item.get("device_id")) or is_missing(item.get("sensor_type")) or value is None:
            continue
        valid.append(SensorReading(
            device_id=item["device_id"],
            sensor_type=item["sensor_type"],
            value=value,
            unit=item.get("unit") or None,
        ))

    if not valid:
        raise ValidationError("No valid readings found")
    if len(valid) < len(readings):
        log.info("batch: dropped %d invalid reading(s)", len(readings) - len(valid))

    with get_session() as session:
        session.add_all(valid)
        session.commit()
        for r in valid:
            session.refresh(r)
        return {
            "success": True,
            "count": len(valid),
            "readings": [reading_out(session, r, with_board=False) for r in valid],
        }
