"""
Command queue (outbox) shared by the generic /commands route and the
per-subsystem control routes.

Entries are inserted as ``pending`` and are only ever advanced by the
firmware consumer through ``advance``. A device's ``current_state`` is a
last-write-wins cache merged next to the insert; the two writes are
separate commits, so a failed merge never undoes a queued command.
"""
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .errors import NotFoundError
from .models import CommandQueueEntry, Device
from .settings import settings
from .utils import utcnow, utcnow_iso

log = logging.getLogger("homedash.commands")

DEFAULT_PRIORITY = 1

def enqueue(session: Session, device_id: str, command_type: str,
            command_data: dict[str, Any], priority: int = DEFAULT_PRIORITY) -> CommandQueueEntry:
    entry = CommandQueueEntry(
        device_id=device_id,
        command_type=command_type,
        command_data=command_data,
        priority=priority,
        status="pending",
        created_at=utcnow(),
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    log.info("queued %s #%s for device %s (priority %s)", command_type, entry.id, device_id, priority)
    return entry

def list_commands(session: Session, device_id: Optional[str] = None,
                  status: str = "pending", limit: int = 50) -> list[tuple[CommandQueueEntry, Device]]:
    """Queue entries joined to their device, in service order."""
    stmt = select(CommandQueueEntry, Device).join(Device, Device.id == CommandQueueEntry.device_id)
    if device_id:
        stmt = stmt.where(CommandQueueEntry.device_id == device_id)
    if status:
        stmt = stmt.where(CommandQueueEntry.status == status)
    if settings.command_priority_order == "asc":
        by_priority = CommandQueueEntry.priority.asc()
    else:
        by_priority = CommandQueueEntry.priority.desc()
    stmt = stmt.order_by(by_priority, CommandQueueEntry.created_at.asc(), CommandQueueEntry.id.asc()).limit(limit)
    return list(session.exec(stmt).all())

def advance(session: Session, command_id: int, status: str, stamp_executed: bool = False,
            response_data: Any = None) -> CommandQueueEntry:
    """Move an entry to `status`. Any string is accepted; no transition rules."""
    entry = session.get(CommandQueueEntry, command_id)
    if not entry:
        raise NotFoundError("Command not found")
    entry.status = status
    if stamp_executed:
        # the consumer's clock is not trusted; stamp server time
        entry.executed_at = utcnow()
    if response_data:
        entry.response_data = response_data
    session.add(entry)
    session.commit()
    session.refresh(entry)
    log.info("command #%s -> %s", entry.id, status)
    return entry

def merge_state(session: Session, device: Device, updates: dict[str, Any],
                mark_online: bool = False) -> dict[str, Any]:
    """Shallow-merge `updates` into the device's cached state and stamp it."""
    state = {**(device.current_state or {}), **updates, "last_updated": utcnow_iso()}
    device.current_state = state
    device.last_updated = utcnow()
    if mark_online:
        device.is_online = True
    session.add(device)
    session.commit()
    return state

def try_merge_state(session: Session, device: Device, updates: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Best-effort merge used after a command insert; failures are only logged."""
    try:
        return merge_state(session, device, updates)
    except SQLAlchemyError:
        session.rollback()
        log.exception("failed to update current_state for device %s", device.id)
        return None
