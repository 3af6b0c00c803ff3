"""Topic naming for one vehicle.

Topic grammar (the vehicle key is used verbatim, everything else is
lower-case and ``/``-joined)::

    {prefix}/{vin}/available
    {prefix}/{vin}/command
    {prefix}/{vin}/polling_status
    {prefix}/{vin}/refresh_interval
    {prefix}/{vin}/refresh_interval_current_val
    {prefix}/device_tracker/{vin}/config
    {prefix}/{element_kind}/{vin}/{element_key}/config
    {prefix}/{diagnostic_kind}/{vin}/{diagnostic_key}/state

State topics are keyed by the diagnostic group; config topics by element.
"""

from __future__ import annotations

from onstar2mqtt.models.vehicle import Vehicle
from onstar2mqtt.rules import SensorKind, classify_sensor_kind

DEFAULT_PREFIX = "homeassistant"


def canonical_key(name: str) -> str:
    """``"AMBIENT AIR  TEMPERATURE"`` -> ``"ambient_air_temperature"``."""
    return "_".join(name.split()).lower()


def friendly_name(name: str) -> str:
    """``"EV PLUG STATE"`` -> ``"Ev Plug State"``."""
    return " ".join(word.capitalize() for word in name.split())


class Topics:
    """Derive every topic of one vehicle."""

    def __init__(self, vehicle: Vehicle, prefix: str = DEFAULT_PREFIX, name_prefix: str = "") -> None:
        self.vehicle = vehicle
        self.prefix = prefix
        self.name_prefix = name_prefix

    @property
    def instance(self) -> str:
        return self.vehicle.instance_key

    def _vehicle_topic(self, leaf: str) -> str:
        return f"{self.prefix}/{self.instance}/{leaf}"

    @property
    def availability(self) -> str:
        return self._vehicle_topic("available")

    @property
    def command(self) -> str:
        return self._vehicle_topic("command")

    @property
    def polling_status(self) -> str:
        return self._vehicle_topic("polling_status")

    @property
    def refresh_interval(self) -> str:
        return self._vehicle_topic("refresh_interval")

    @property
    def refresh_interval_current_val(self) -> str:
        return self._vehicle_topic("refresh_interval_current_val")

    @property
    def device_tracker_config(self) -> str:
        return f"{self.prefix}/{SensorKind.DEVICE_TRACKER}/{self.instance}/config"

    def config_topic(self, element_name: str) -> str:
        kind = classify_sensor_kind(element_name)
        return f"{self.prefix}/{kind}/{self.instance}/{canonical_key(element_name)}/config"

    def state_topic(self, diagnostic_name: str) -> str:
        """State topic of a diagnostic group (or of a command, by name)."""
        kind = classify_sensor_kind(diagnostic_name)
        return f"{self.prefix}/{kind}/{self.instance}/{canonical_key(diagnostic_name)}/state"

    def command_status_topic(self, command: str, command_topic: str | None = None) -> str:
        return f"{command_topic or self.command}/{command}/state"

    def unique_id(self, element_name: str) -> str:
        return f"{self.instance.lower()}-{canonical_key(element_name).replace('_', '-')}"

    def entity_name(self, name: str) -> str:
        if self.name_prefix:
            return f"{self.name_prefix} {name}"
        return name
