import logging
from typing import Any

from fastapi import APIRouter, Body
from sqlmodel import select

from .db import get_session
from .errors import ConflictError, store_step
from .models import Board, Room, System, Device
from .serializers import board_out, device_out, system_out
from .settings import settings
from .utils import is_missing, require_fields, utcnow

router = APIRouter(prefix="/api", tags=["resources"])
log = logging.getLogger("homedash.resources")

def _opt(value: Any) -> Any:
    return None if is_missing(value) else value

# ---------------- boards ----------------
@router.get("/boards")
def list_boards():
    with get_session() as session, store_step("Failed to fetch boards from database"):
        rows = session.exec(select(Board).order_by(Board.created_at.asc())).all()
        return [board_out(session, b) for b in rows]

@router.post("/boards", status_code=201)
def create_board(body: dict[str, Any] = Body(...)):
    require_fields(body, ["name", "board_type"])
    mac = _opt(body.get("mac_address"))

    with get_session() as session:
        if mac:
            with store_step("Failed to check MAC address uniqueness"):
                existing = session.exec(select(Board).where(Board.mac_address == mac)).first()
            if existing:
                raise ConflictError(f"MAC address {mac} is already registered to board: {existing.name}")

        board = Board(
            name=body["name"],
            board_type=body["board_type"],
            mac_address=mac,
            ip_address=_opt(body.get("ip_address")),
            status="offline",
            total_pins=body.get("total_pins") or settings.default_total_pins,
            available_pins=body.get("available_pins") or [],
            last_seen=utcnow(),
        )
        session.add(board)
        session.commit()
        session.refresh(board)
        log.info("board %s created (%s)", board.id, board.name)
        return board_out(session, board)

# ---------------- rooms ----------------
@router.get("/rooms")
def list_rooms():
    with get_session() as session, store_step("Failed to fetch rooms from database"):
        rows = session.exec(select(Room).order_by(Room.created_at.asc())).all()
        return [r.model_dump() for r in rows]

@router.post("/rooms", status_code=201)
def create_room(body: dict[str, Any] = Body(...)):
    require_fields(body, ["name"])
    with get_session() as session:
        room = Room(name=body["name"], description=_opt(body.get("description")))
        session.add(room)
        session.commit()
        session.refresh(room)
        return room.model_dump()

# ---------------- systems ----------------
@router.get("/systems")
def list_systems():
    with get_session() as session, store_step("Failed to fetch systems from database"):
        rows = session.exec(select(System).order_by(System.created_at.asc())).all()
        return [system_out(session, s) for s in rows]

@router.post("/systems", status_code=201)
def create_system(body: dict[str, Any] = Body(...)):
    require_fields(body, ["name", "type", "board_id"])
    with get_session() as session:
        system = System(
            name=body["name"],
            type=body["type"],
            description=_opt(body.get("description")),
            board_id=body["board_id"],
            room_id=_opt(body.get("room_id")),
            is_active=True,
        )
        session.add(system)
        session.commit()
        session.refresh(system)
        log.info("system %s created (%s)", system.id, system.type)
        return system_out(session, system)

# ---------------- devices ----------------
@router.get("/devices")
def list_devices():
    with get_session() as session, store_step("Failed to fetch devices from database"):
        rows = session.exec(select(Device).order_by(Device.created_at.asc())).all()
        return [device_out(session, d) for d in rows]

@router.post("/devices", status_code=201)
def create_device(body: dict[str, Any] = Body(...)):
    require_fields(body, ["board_id", "name", "type", "pin_number"])
    board_id, pin = body["board_id"], body["pin_number"]

    with get_session() as session:
        with store_step("Failed to check pin conflicts"):
            clash = session.exec(
                select(Device).where(Device.board_id == board_id, Device.pin_number == pin)
            ).first()
        if clash:
            raise ConflictError(f"Pin {pin} is already in use by device: {clash.name}")

        device = Device(
            board_id=board_id,
            room_id=_opt(body.get("room_id")),
            system_id=_opt(body.get("system_id")),
            name=body["name"],
            type=body["type"],
            pin_number=pin,
            pin_type=body.get("pin_type") or "digital",
            properties=body.get("properties") or {},
            current_state={},
            is_online=False,
        )
        session.add(device)
        session.commit()
        session.refresh(device)
        log.info("device %s created on board %s pin %s", device.id, board_id, pin)
        return device_out(session, device)
