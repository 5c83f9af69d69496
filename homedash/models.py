import uuid
from typing import Any, Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Column, JSON

from .utils import utcnow

def _uuid() -> str:
    return str(uuid.uuid4())

class Board(SQLModel, table=True):
    __tablename__ = "boards"

    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    board_type: str
    mac_address: Optional[str] = Field(default=None, unique=True)
    ip_address: Optional[str] = None
    status: str = Field(default="offline")  # online|offline
    total_pins: int = 30
    available_pins: list = Field(default_factory=list, sa_column=Column(JSON))
    last_seen: Optional[datetime] = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow, index=True)

class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)

class System(SQLModel, table=True):
    __tablename__ = "systems"

    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    type: str = Field(index=True)  # door_access|garage_control|smoke_alarm|rain_detection|...
    description: Optional[str] = None
    board_id: str = Field(foreign_key="boards.id")
    room_id: Optional[str] = Field(default=None, foreign_key="rooms.id")
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow, index=True)

class Device(SQLModel, table=True):
    __tablename__ = "devices"
    __table_args__ = (UniqueConstraint("board_id", "pin_number", name="uq_devices_board_pin"),)

    id: str = Field(default_factory=_uuid, primary_key=True)
    board_id: str = Field(foreign_key="boards.id", index=True)
    room_id: Optional[str] = Field(default=None, foreign_key="rooms.id")
    system_id: Optional[str] = Field(default=None, foreign_key="systems.id")
    name: str
    type: str = Field(index=True)
    pin_number: int
    pin_type: str = "digital"  # digital|analog
    properties: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    current_state: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    is_online: bool = False
    last_updated: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)

class SensorReading(SQLModel, table=True):
    __tablename__ = "sensor_readings"

    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(index=True, foreign_key="devices.id")
    sensor_type: str = Field(index=True)
    value: float
    unit: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow, index=True)

class CommandQueueEntry(SQLModel, table=True):
    __tablename__ = "command_queue"

    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(index=True, foreign_key="devices.id")
    command_type: str
    command_data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    priority: int = 1
    status: str = Field(default="pending", index=True)  # pending|executed|failed|...
    created_at: datetime = Field(default_factory=utcnow, index=True)
    executed_at: Optional[datetime] = None
    response_data: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
