"""onstar2mqtt - Bridge OnStar vehicle diagnostics and commands to MQTT."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("onstar2mqtt")
except PackageNotFoundError:
    __version__ = "0+local"
from onstar2mqtt.account import AccountClient
from onstar2mqtt.bus import Bus, MqttBus, Will
from onstar2mqtt.commands import Commands
from onstar2mqtt.config import MqttConfig, OnStarConfig
from onstar2mqtt.controller import CycleState, PublishCycleController
from onstar2mqtt.dispatcher import CommandDispatcher
from onstar2mqtt.exceptions import (
    CommandExecutionError,
    CommandNotFoundError,
    ConfigError,
    FetchError,
    OnStarMqttError,
    TransportError,
    VehicleApiError,
    VehicleNotFoundError,
    error_payload,
)
from onstar2mqtt.models import Diagnostic, DiagnosticElement, RemoteCommand, Vehicle
from onstar2mqtt.rules import SensorKind, classify_sensor_kind, convert, metadata_for
from onstar2mqtt.topics import Topics

__all__ = [
    "__version__",
    "AccountClient",
    "Bus",
    "CommandDispatcher",
    "CommandExecutionError",
    "CommandNotFoundError",
    "Commands",
    "ConfigError",
    "CycleState",
    "Diagnostic",
    "DiagnosticElement",
    "FetchError",
    "MqttBus",
    "MqttConfig",
    "OnStarConfig",
    "OnStarMqttError",
    "PublishCycleController",
    "RemoteCommand",
    "SensorKind",
    "Topics",
    "TransportError",
    "Vehicle",
    "VehicleApiError",
    "VehicleNotFoundError",
    "Will",
    "classify_sensor_kind",
    "convert",
    "error_payload",
    "metadata_for",
]
