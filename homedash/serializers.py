"""Enriched row shapes returned by the API.

Related rows are nested under the table name of the relation
(``boards``, ``rooms``, ``devices``, ``systems``), which is what the
dashboard pages read.
"""
from typing import Any, Optional

from sqlmodel import Session, select

from .models import Board, Room, System, Device, SensorReading, CommandQueueEntry

def _pick(row, *fields: str) -> Optional[dict[str, Any]]:
    if row is None:
        return None
    return {f: getattr(row, f) for f in fields}

def board_summary(b: Optional[Board]) -> Optional[dict]:
    return _pick(b, "id", "name", "board_type", "status", "available_pins")

def board_brief(b: Optional[Board]) -> Optional[dict]:
    return _pick(b, "id", "name", "board_type")

def room_summary(r: Optional[Room]) -> Optional[dict]:
    return _pick(r, "id", "name", "description")

def device_brief(d: Optional[Device]) -> Optional[dict]:
    return _pick(d, "id", "name", "type", "pin_number")

def _get(session: Session, model, key):
    return session.get(model, key) if key else None

def board_out(session: Session, b: Board) -> dict:
    out = b.model_dump()
    devices = session.exec(
        select(Device).where(Device.board_id == b.id).order_by(Device.created_at)
    ).all()
    out["devices"] = [
        _pick(d, "id", "name", "type", "pin_number", "pin_type", "properties",
              "current_state", "is_online", "created_at")
        for d in devices
    ]
    return out

def device_out(session: Session, d: Device) -> dict:
    out = d.model_dump()
    out["boards"] = board_summary(_get(session, Board, d.board_id))
    out["rooms"] = room_summary(_get(session, Room, d.room_id))
    return out

def control_device_out(session: Session, d: Device) -> dict:
    """Device row as shown on the per-subsystem control views."""
    out = d.model_dump()
    out["boards"] = _pick(_get(session, Board, d.board_id), "id", "name", "board_type", "status")
    out["rooms"] = room_summary(_get(session, Room, d.room_id))
    out["systems"] = _pick(_get(session, System, d.system_id), "id", "name", "type")
    return out

def system_out(session: Session, s: System) -> dict:
    out = s.model_dump()
    out["boards"] = board_summary(_get(session, Board, s.board_id))
    out["rooms"] = room_summary(_get(session, Room, s.room_id))
    return out

def _device_with_board(session: Session, device_id: str) -> Optional[dict]:
    d = session.get(Device, device_id)
    out = device_brief(d)
    if out is not None:
        out["boards"] = board_brief(_get(session, Board, d.board_id))
    return out

def reading_out(session: Session, r: SensorReading, with_board: bool = True) -> dict:
    out = r.model_dump()
    if with_board:
        out["devices"] = _device_with_board(session, r.device_id)
    else:
        out["devices"] = device_brief(session.get(Device, r.device_id))
    return out

def command_out(session: Session, c: CommandQueueEntry, with_board: bool = True) -> dict:
    out = c.model_dump()
    if with_board:
        out["devices"] = _device_with_board(session, c.device_id)
    else:
        out["devices"] = device_brief(session.get(Device, c.device_id))
    return out
