from typing import Any, Optional

from fastapi import APIRouter, Body

from . import command_queue
from .db import get_session
from .errors import NotFoundError, ValidationError, store_step
from .models import Device
from .serializers import command_out
from .utils import require_fields

router = APIRouter(prefix="/api", tags=["commands"])

def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        # 3.0 is fine, 2.7 is not truncated
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")

@router.get("/commands")
def get_commands(device_id: Optional[str] = None, status: Optional[str] = None, limit: Optional[str] = None):
    try:
        n = int(limit) if limit else 50
    except ValueError:
        n = 50
    with get_session() as session, store_step("Failed to fetch commands from database"):
        rows = command_queue.list_commands(session, device_id=device_id, status=status or "pending", limit=n if n > 0 else 50)
        return [
            {
                "id": c.id,
                "device_id": c.device_id,
                "command_type": c.command_type,
                "command_data": c.command_data,
                "status": c.status,
                "priority": c.priority,
                "created_at": c.created_at,
                "devices": {"id": d.id, "name": d.name, "type": d.type},
            }
            for c, d in rows
        ]

@router.post("/commands", status_code=201)
def post_command(body: dict[str, Any] = Body(...)):
    """Queue a command as pending.

    A missing or null priority becomes 1. An explicit 0 is kept as 0, so
    callers can queue urgent commands directly.
    """
    require_fields(body, ["device_id", "command_type", "command_data"])
    priority = body.get("priority")
    priority = command_queue.DEFAULT_PRIORITY if priority is None else _as_int(priority, "priority")

    with get_session() as session:
        if not session.get(Device, body["device_id"]):
            raise NotFoundError("Device not found")
        # status is always pending on insert, whatever the caller sent
        entry = command_queue.enqueue(
            session, body["device_id"], body["command_type"], body["command_data"], priority=priority,
        )
        return command_out(session, entry)

@router.patch("/commands")
def patch_command(body: dict[str, Any] = Body(...)):
    require_fields(body, ["id", "status"])
    command_id = _as_int(body["id"], "id")
    with get_session() as session:
        entry = command_queue.advance(
            session,
            command_id,
            body["status"],
            stamp_executed=bool(body.get("executed_at")),
            response_data=body.get("response_data"),
        )
        return command_out(session, entry)
