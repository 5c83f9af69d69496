"""Typed action payloads for the per-subsystem control routes.

Each variant carries only the fields legal for its action. ``command_data()``
is what goes into the queue next to ``action``; ``state()`` is what gets
promoted into the device's ``current_state``.
"""
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter

class ControlAction(BaseModel):
    action: str

    def command_data(self) -> dict[str, Any]:
        return self.model_dump(exclude={"action"}, exclude_none=True)

    def state(self) -> dict[str, Any]:
        return {}

# ---------------- door access ----------------
class DoorUnlock(ControlAction):
    action: Literal["unlock"]
    access_code: Optional[Union[str, int]] = None
    manual_override: Optional[bool] = None

    def state(self) -> dict[str, Any]:
        return {"access_requested": True}

class DoorLock(ControlAction):
    action: Literal["lock"]
    manual_override: Optional[bool] = None

DoorAction = Annotated[Union[DoorUnlock, DoorLock], Field(discriminator="action")]

# ---------------- garage ----------------
class GarageAction(ControlAction):
    auto_mode: Optional[bool] = None
    manual_override: Optional[bool] = None

    def state(self) -> dict[str, Any]:
        return {"auto_mode": self.auto_mode} if self.auto_mode is not None else {}

# ---------------- fan ----------------
# speed is a 0-3 step or a raw PWM duty value
Speed = Annotated[int, Field(ge=0, le=255)]

class _FanAction(ControlAction):
    def state(self) -> dict[str, Any]:
        data = self.command_data()
        out: dict[str, Any] = {"auto_mode": data["auto_mode"]}
        if "speed" in data:
            out["manual_speed"] = data["speed"]
        if "target_temperature" in data:
            out["target_temperature"] = data["target_temperature"]
        return out

class FanSetSpeed(_FanAction):
    action: Literal["set_speed"]
    speed: Speed

    def command_data(self) -> dict[str, Any]:
        return {"speed": self.speed, "auto_mode": False}

class FanSetAuto(_FanAction):
    action: Literal["set_auto"]
    target_temperature: Optional[float] = None

    def command_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {"auto_mode": True}
        if self.target_temperature is not None:
            data["target_temperature"] = self.target_temperature
        return data

class FanSetManual(_FanAction):
    action: Literal["set_manual"]
    speed: Optional[Speed] = None

    def command_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {"auto_mode": False}
        if self.speed is not None:
            data["speed"] = self.speed
        return data

FanAction = Annotated[Union[FanSetSpeed, FanSetAuto, FanSetManual], Field(discriminator="action")]

# ---------------- gas alarm ----------------
class GasAlarmAction(ControlAction):
    gas_threshold: Optional[Union[int, float]] = None
    alarm_duration: Optional[Union[int, float]] = None

    def state(self) -> dict[str, Any]:
        return self.command_data()

# ---------------- rain / windows ----------------
class _RainAction(ControlAction):
    def state(self) -> dict[str, Any]:
        data = self.command_data()
        return {k: data[k] for k in ("mode", "window_state") if k in data}

class RainSetMode(_RainAction):
    action: Literal["set_mode"]
    mode: Literal["AUTO", "MANUAL"]

class RainSetWindowState(_RainAction):
    action: Literal["set_window_state"]
    window_state: Literal["OPEN", "CLOSED"]

    def command_data(self) -> dict[str, Any]:
        return {"window_state": self.window_state, "mode": "MANUAL"}

class RainEmergencyClose(_RainAction):
    action: Literal["emergency_close"]

    def command_data(self) -> dict[str, Any]:
        return {"window_state": "CLOSED", "emergency": True}

class RainEmergencyOpen(_RainAction):
    action: Literal["emergency_open"]

    def command_data(self) -> dict[str, Any]:
        return {"window_state": "OPEN", "emergency": True}

RainAction = Annotated[
    Union[RainSetMode, RainSetWindowState, RainEmergencyClose, RainEmergencyOpen],
    Field(discriminator="action"),
]

door_actions = TypeAdapter(DoorAction)
garage_actions = TypeAdapter(GarageAction)
fan_actions = TypeAdapter(FanAction)
gas_actions = TypeAdapter(GasAlarmAction)
rain_actions = TypeAdapter(RainAction)
