"""
Per-subsystem control endpoints (door, garage, fan, gas alarm, rain).

All five follow the same choreography and differ only in the data held by
their ``ControlDomain``:

* GET   - devices of the domain's types, the newest relevant sensor reading
          and (where the domain has one) its System row.
* POST  - queue a typed action for an actuator, then best-effort merge the
          intent into the device's ``current_state``.
* PATCH - firmware reports observed state; recognised fields are merged.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import pydantic
from fastapi import APIRouter, Body
from pydantic import TypeAdapter
from sqlalchemy import or_
from sqlmodel import Session, select

from . import command_queue, schemas
from .db import get_session
from .errors import NotFoundError, ValidationError, store_step
from .models import Device, SensorReading, System
from .serializers import command_out, control_device_out
from .utils import epoch_ms, require_fields, utcnow_iso

log = logging.getLogger("homedash.controls")

def _normal_priority(action: str) -> int:
    return command_queue.DEFAULT_PRIORITY

def _emergency_first(action: str) -> int:
    return 0 if "emergency" in action else command_queue.DEFAULT_PRIORITY

@dataclass(frozen=True)
class ControlDomain:
    path: str
    label: str                      # used in messages, e.g. "Fan motor"
    command_type: str
    device_types: tuple[str, ...]   # shown on the view
    target_types: tuple[str, ...]   # accepted as POST targets
    actions: TypeAdapter
    report_fields: dict[str, str]   # request field -> current_state key
    system_type: Optional[str] = None
    sensor_device_type: Optional[str] = None
    sensor_type: Optional[str] = None
    reading_key: Optional[str] = None
    priority: Callable[[str], int] = field(default=_normal_priority)

def _fields(*names: str) -> dict[str, str]:
    return {n: n for n in names}

DOMAINS = [
    ControlDomain(
        path="/door-access",
        label="Door servo",
        command_type="door_control",
        device_types=("servo_motor", "keypad_row", "lcd_display"),
        target_types=("servo_motor",),
        actions=schemas.door_actions,
        report_fields=_fields("door_state", "access_attempts", "system_locked"),
        system_type="door_access",
    ),
    ControlDomain(
        path="/garage-control",
        label="Garage door servo",
        command_type="garage_control",
        device_types=("servo_motor", "ir_sensor"),
        target_types=("servo_motor",),
        actions=schemas.garage_actions,
        report_fields=_fields("door_state", "auto_mode", "motion_detected", "sensor_location"),
        system_type="garage_control",
        sensor_device_type="ir_sensor",
        sensor_type="motion",
        reading_key="latestMotionReading",
    ),
    ControlDomain(
        path="/fan-control",
        label="Fan motor",
        command_type="fan_control",
        device_types=("fan_motor", "temperature_sensor"),
        target_types=("fan_motor",),
        actions=schemas.fan_actions,
        report_fields=_fields("current_speed", "current_temperature", "auto_mode"),
        sensor_device_type="temperature_sensor",
        sensor_type="temperature",
        reading_key="latestTemperature",
    ),
    ControlDomain(
        path="/gas-alarm",
        label="Gas alarm",
        command_type="gas_alarm_control",
        device_types=("gas_sensor", "buzzer"),
        target_types=("gas_sensor", "buzzer"),
        actions=schemas.gas_actions,
        report_fields=_fields("gas_level", "alarm_active", "buzzer_active", "threshold_exceeded"),
        system_type="smoke_alarm",
        sensor_device_type="gas_sensor",
        sensor_type="smoke",
        reading_key="latestSmokeReading",
    ),
    ControlDomain(
        path="/rain-control",
        label="Rain detection",
        command_type="rain_control",
        device_types=("rain_sensor", "window_servo"),
        target_types=("rain_sensor", "window_servo"),
        actions=schemas.rain_actions,
        report_fields={
            "rain_level": "rain_level",
            "rain_reading": "last_reading",
            "window_state": "window_state",
            "mode": "mode",
            "dry_count": "dry_count",
        },
        system_type="rain_detection",
        sensor_device_type="rain_sensor",
        sensor_type="rain",
        reading_key="latestRainReading",
        priority=_emergency_first,
    ),
]

def _describe(exc: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'body'}: {e['msg']}" for e in exc.errors()
    )

def parse_action(domain: ControlDomain, body: dict[str, Any]) -> schemas.ControlAction:
    try:
        return domain.actions.validate_python(body)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid {domain.label.lower()} action: {body.get('action')}", details=_describe(e))

def domain_devices(session: Session, domain: ControlDomain) -> list[Device]:
    stmt = select(Device).where(Device.type.in_(domain.device_types))
    if domain.system_type:
        # unassigned devices stay visible; ones owned by another subsystem do not
        stmt = stmt.outerjoin(System, System.id == Device.system_id).where(
            or_(Device.system_id.is_(None), System.type == domain.system_type)
        )
    return list(session.exec(stmt.order_by(Device.created_at.asc())).all())

def latest_reading(session: Session, domain: ControlDomain, devices: list[Device]) -> Optional[SensorReading]:
    ids = [d.id for d in devices if d.type == domain.sensor_device_type]
    if not ids:
        return None
    stmt = (
        select(SensorReading)
        .where(SensorReading.device_id.in_(ids), SensorReading.sensor_type == domain.sensor_type)
        .order_by(SensorReading.timestamp.desc(), SensorReading.id.desc())
        .limit(1)
    )
    return session.exec(stmt).first()

def domain_system(session: Session, domain: ControlDomain) -> Optional[System]:
    stmt = select(System).where(System.type == domain.system_type).order_by(System.created_at.asc())
    return session.exec(stmt).first()

def view(domain: ControlDomain) -> dict[str, Any]:
    with get_session() as session, store_step(f"Failed to fetch {domain.label.lower()} devices from database"):
        devices = domain_devices(session, domain)
        out: dict[str, Any] = {"devices": [control_device_out(session, d) for d in devices]}
        if domain.reading_key:
            reading = latest_reading(session, domain, devices)
            out[domain.reading_key] = reading.model_dump() if reading else None
        if domain.system_type:
            system = domain_system(session, domain)
            out["system"] = system.model_dump() if system else None
        out["timestamp"] = utcnow_iso()
        return out

def act(domain: ControlDomain, body: dict[str, Any]) -> dict[str, Any]:
    require_fields(body, ["device_id", "action"])
    action = parse_action(domain, body)

    with get_session() as session:
        device = session.exec(
            select(Device).where(Device.id == body["device_id"], Device.type.in_(domain.target_types))
        ).first()
        if not device:
            raise NotFoundError(f"{domain.label} device not found")

        data = {"action": action.action, **action.command_data(), "timestamp": epoch_ms()}
        entry = command_queue.enqueue(
            session, device.id, domain.command_type, data, priority=domain.priority(action.action),
        )
        out = command_out(session, entry, with_board=False)
        command_queue.try_merge_state(session, device, {"last_command": action.action, **action.state()})
        return out

def report(domain: ControlDomain, body: dict[str, Any]) -> dict[str, Any]:
    require_fields(body, ["device_id"])
    with get_session() as session:
        device = session.get(Device, body["device_id"])
        if not device:
            raise NotFoundError("Device not found")
        updates = {key: body[f] for f, key in domain.report_fields.items() if f in body}
        state = command_queue.merge_state(session, device, updates, mark_online=True)
        log.debug("%s reported %s", device.id, sorted(updates))
        return {"success": True, "message": f"{domain.label} status updated", "current_state": state}

def _endpoints(domain: ControlDomain):
    def _get():
        return view(domain)

    def _post(body: dict[str, Any] = Body(...)):
        return act(domain, body)

    def _patch(body: dict[str, Any] = Body(...)):
        return report(domain, body)

    return _get, _post, _patch

def build_router() -> APIRouter:
    router = APIRouter(prefix="/api", tags=["controls"])
    for domain in DOMAINS:
        _get, _post, _patch = _endpoints(domain)
        name = domain.path.strip("/").replace("-", "_")
        router.add_api_route(domain.path, _get, methods=["GET"], name=f"{name}_view")
        router.add_api_route(domain.path, _post, methods=["POST"], status_code=201, name=f"{name}_act")
        router.add_api_route(domain.path, _patch, methods=["PATCH"], name=f"{name}_report")
    return router

router = build_router()
