"""Data models for account API payloads and bus requests."""

from onstar2mqtt.models._base import OnStarBaseModel
from onstar2mqtt.models.commands import (
    DIAGNOSTIC_ITEMS,
    AlertAction,
    AlertOptions,
    AlertOverride,
    ChargeOverrideMode,
    ChargeOverrideOptions,
    ChargingProfileChargeMode,
    ChargingProfileOptions,
    ChargingProfileRateType,
    CommandOptions,
    CommandRequest,
    DiagnosticsOptions,
    DoorOptions,
    NoOptions,
    RemoteCommand,
)
from onstar2mqtt.models.diagnostic import DEFAULT_MESSAGE, Diagnostic, DiagnosticElement
from onstar2mqtt.models.vehicle import Vehicle

__all__ = [
    "AlertAction",
    "AlertOptions",
    "AlertOverride",
    "ChargeOverrideMode",
    "ChargeOverrideOptions",
    "ChargingProfileChargeMode",
    "ChargingProfileOptions",
    "ChargingProfileRateType",
    "CommandOptions",
    "CommandRequest",
    "DEFAULT_MESSAGE",
    "DIAGNOSTIC_ITEMS",
    "Diagnostic",
    "DiagnosticElement",
    "DiagnosticsOptions",
    "DoorOptions",
    "NoOptions",
    "OnStarBaseModel",
    "RemoteCommand",
    "Vehicle",
]
