"""Remote command names, inbound requests and typed command options.

Options arrive on the bus in the account API's camelCase spelling
(``{"chargeMode": "IMMEDIATE"}``); :meth:`CommandOptions.to_request`
encodes them back to that spelling for the account client.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------


class RemoteCommand(enum.StrEnum):
    """Command names accepted on the command topic.

    This is the complete allow-list; anything else is rejected.
    """

    GET_ACCOUNT_VEHICLES = "getAccountVehicles"
    START_VEHICLE = "startVehicle"
    CANCEL_START_VEHICLE = "cancelStartVehicle"
    ALERT = "alert"
    ALERT_FLASH = "alertFlash"
    ALERT_HONK = "alertHonk"
    CANCEL_ALERT = "cancelAlert"
    LOCK_DOOR = "lockDoor"
    UNLOCK_DOOR = "unlockDoor"
    CHARGE_OVERRIDE = "chargeOverride"
    CANCEL_CHARGE_OVERRIDE = "cancelChargeOverride"
    GET_CHARGING_PROFILE = "getChargingProfile"
    SET_CHARGING_PROFILE = "setChargingProfile"
    DIAGNOSTICS = "diagnostics"
    GET_LOCATION = "getLocation"


class AlertAction(enum.StrEnum):
    FLASH = "Flash"
    HONK = "Honk"


class AlertOverride(enum.StrEnum):
    DOOR_OPEN = "DoorOpen"
    IGNITION_ON = "IgnitionOn"


class ChargeOverrideMode(enum.StrEnum):
    CHARGE_NOW = "CHARGE_NOW"
    CANCEL_OVERRIDE = "CANCEL_OVERRIDE"


class ChargingProfileChargeMode(enum.StrEnum):
    DEFAULT_IMMEDIATE = "DEFAULT_IMMEDIATE"
    IMMEDIATE = "IMMEDIATE"
    DEPARTURE_BASED = "DEPARTURE_BASED"
    RATE_BASED = "RATE_BASED"
    PHEV_AFTER_MIDNIGHT = "PHEV_AFTER_MIDNIGHT"


class ChargingProfileRateType(enum.StrEnum):
    OFFPEAK = "OFFPEAK"
    MIDPEAK = "MIDPEAK"
    PEAK = "PEAK"


#: Diagnostic items requested when a ``diagnostics`` command names none
#: and the vehicle advertises no supported list.
DIAGNOSTIC_ITEMS: tuple[str, ...] = (
    "AMBIENT AIR TEMPERATURE",
    "ENGINE COOLANT TEMP",
    "ENGINE RPM",
    "EV BATTERY LEVEL",
    "EV CHARGE STATE",
    "EV ESTIMATED CHARGE END",
    "EV PLUG STATE",
    "EV PLUG VOLTAGE",
    "EV SCHEDULED CHARGE START",
    "FUEL TANK INFO",
    "HANDS FREE CALLING",
    "HOTSPOT CONFIG",
    "HOTSPOT STATUS",
    "INTERM VOLT BATT VOLT",
    "LAST TRIP DISTANCE",
    "LAST TRIP FUEL ECONOMY",
    "LIFETIME EV ODOMETER",
    "LIFETIME FUEL ECON",
    "LIFETIME FUEL USED",
    "ODOMETER",
    "OIL LIFE",
    "TIRE PRESSURE",
    "VEHICLE RANGE",
)


# ------------------------------------------------------------------
# Inbound request
# ------------------------------------------------------------------


class CommandRequest(BaseModel):
    """JSON message received on the command topic."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    command: str
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("command")
    @classmethod
    def _command_non_empty(cls, value: str) -> str:
        command = value.strip()
        if not command:
            raise ValueError("command must be non-empty")
        return command

    @field_validator("options", mode="before")
    @classmethod
    def _options_default(cls, value: Any) -> Any:
        return {} if value is None else value


# ------------------------------------------------------------------
# Command options
# ------------------------------------------------------------------


class CommandOptions(BaseModel):
    """Base class for command option models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_request(self) -> dict[str, Any]:
        """Return the request body for the account client."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NoOptions(CommandOptions):
    """Commands that take no options still reject unknown keys."""


class AlertOptions(CommandOptions):
    action: list[AlertAction] = Field(default_factory=lambda: [AlertAction.HONK, AlertAction.FLASH])
    delay: int = Field(default=0, ge=0)
    duration: int = Field(default=1, ge=1)
    override: list[AlertOverride] = Field(default_factory=list)


class DoorOptions(CommandOptions):
    delay: int = Field(default=0, ge=0)


class ChargeOverrideOptions(CommandOptions):
    mode: ChargeOverrideMode = ChargeOverrideMode.CHARGE_NOW


class ChargingProfileOptions(CommandOptions):
    charge_mode: ChargingProfileChargeMode = ChargingProfileChargeMode.IMMEDIATE
    rate_type: ChargingProfileRateType = ChargingProfileRateType.MIDPEAK


class DiagnosticsOptions(CommandOptions):
    diagnostic_item: list[str] = Field(default_factory=list)
    """Requested items; empty means every item the vehicle supports."""
