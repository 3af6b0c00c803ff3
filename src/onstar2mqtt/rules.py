"""Static unit and classification rules.

Everything here is a read-only lookup table or a pure function over one:

* :data:`UNIT_ALIASES` maps raw unit spellings from the account API to
  canonical symbols.
* :data:`CONVERSIONS` maps a metric unit to the single imperial unit it is
  additionally published in.
* :data:`METADATA` maps a canonical key to Home Assistant ``device_class``
  / ``state_class`` hints, friendly name overrides and JSON attributes.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

#: Command name of the location lookup; its entity is a device tracker.
LOCATION_COMMAND = "getLocation"

_BINARY_SUFFIXES: tuple[str, ...] = ("STATE", "INDICATOR", "STATUS")


class SensorKind(enum.StrEnum):
    """Home Assistant entity platform used for a diagnostic name."""

    SENSOR = "sensor"
    BINARY_SENSOR = "binary_sensor"
    DEVICE_TRACKER = "device_tracker"


def classify_sensor_kind(name: str) -> SensorKind:
    """Classify a diagnostic/element name.

    Names ending in ``STATE``, ``INDICATOR`` or ``STATUS`` (any case) are
    binary sensors, the location command is a device tracker, and every
    other name (including ``""``) is a plain sensor.
    """
    trimmed = name.strip()
    if trimmed.upper().endswith(_BINARY_SUFFIXES):
        return SensorKind.BINARY_SENSOR
    if trimmed.lower() == LOCATION_COMMAND.lower():
        return SensorKind.DEVICE_TRACKER
    return SensorKind.SENSOR


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

UNIT_ALIASES: MappingProxyType[str, str | None] = MappingProxyType(
    {
        "Cel": "°C",
        "KM": "km",
        "Km": "km",
        "KPa": "kPa",
        "kpa": "kPa",
        "l": "L",
        "kmpl": "km/L",
        "km/l": "km/L",
        "kwh": "kWh",
        "KWH": "kWh",
        "volts": "V",
        "Volts": "V",
        "XXX": None,
        "N/A": None,
    }
)


def normalize_unit(unit: Any) -> str | None:
    """Return the canonical symbol for a raw unit, or ``None`` for unitless."""
    if not isinstance(unit, str):
        return None
    stripped = unit.strip()
    if not stripped:
        return None
    if stripped in UNIT_ALIASES:
        return UNIT_ALIASES[stripped]
    return stripped


def as_number(value: float) -> int | float:
    """Return *value* as an ``int`` when it has no fractional part."""
    if math.isfinite(value) and float(value).is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class ConversionRule:
    """Linear conversion ``to = from * factor + offset``, one decimal."""

    from_unit: str
    to_unit: str
    suffix: str
    factor: float
    offset: float = 0.0

    @property
    def name_suffix(self) -> str:
        """Suffix appended to a raw element name (``"_mi"`` -> ``"MI"``)."""
        return self.suffix.lstrip("_").upper()

    def convert(self, value: float) -> int | float:
        return as_number(round(float(value) * self.factor + self.offset, 1))


CONVERSIONS: MappingProxyType[str, ConversionRule] = MappingProxyType(
    {
        "°C": ConversionRule("°C", "°F", "_f", factor=9 / 5, offset=32),
        "km": ConversionRule("km", "mi", "_mi", factor=0.621371),
        "L": ConversionRule("L", "gal", "_gal", factor=0.264172),
        "km/L": ConversionRule("km/L", "mpg", "_mpg", factor=2.35215),
    }
)


def conversion_for(unit: str | None) -> ConversionRule | None:
    if unit is None:
        return None
    return CONVERSIONS.get(unit)


def convert(value: float, unit: str) -> int | float:
    """Convert *value* from metric *unit* to its imperial counterpart.

    Raises :class:`KeyError` when *unit* has no conversion.
    """
    return CONVERSIONS[unit].convert(value)


# ---------------------------------------------------------------------------
# Discovery metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetadataRule:
    """Discovery hints for one canonical key.

    ``attributes`` turns on a JSON attributes template exposing the
    element's ``_message``; ``recommendation`` additionally exposes the
    named key (the tire placard pressure) as ``recommendation``.
    """

    device_class: str | None = None
    state_class: str | None = None
    friendly_name: str | None = None
    recommendation: str | None = None
    attributes: bool = False


_MEASUREMENT = "measurement"
_TOTAL_INCREASING = "total_increasing"

_TEMPERATURE = MetadataRule("temperature", _MEASUREMENT)
_DISTANCE_TOTAL = MetadataRule("distance", _TOTAL_INCREASING)
_DISTANCE = MetadataRule("distance", _MEASUREMENT)
_VOLUME_STORAGE = MetadataRule("volume_storage", _MEASUREMENT)
_VOLUME_TOTAL = MetadataRule("volume", _TOTAL_INCREASING)
_ENERGY_TOTAL = MetadataRule("energy", _TOTAL_INCREASING)
_PLAIN_MEASUREMENT = MetadataRule(None, _MEASUREMENT)


def _tire(position: str, axle: str) -> MetadataRule:
    return MetadataRule(
        "pressure",
        _MEASUREMENT,
        friendly_name=f"Tire Pressure: {position}",
        recommendation=f"tire_pressure_placard_{axle}",
        attributes=True,
    )


METADATA: MappingProxyType[str, MetadataRule] = MappingProxyType(
    {
        "ambient_air_temperature": _TEMPERATURE,
        "ambient_air_temperature_f": _TEMPERATURE,
        "engine_coolant_temp": _TEMPERATURE,
        "engine_coolant_temp_f": _TEMPERATURE,
        "odometer": _DISTANCE_TOTAL,
        "odometer_mi": _DISTANCE_TOTAL,
        "lifetime_ev_odometer": _DISTANCE_TOTAL,
        "lifetime_ev_odometer_mi": _DISTANCE_TOTAL,
        "ev_range": _DISTANCE,
        "ev_range_mi": _DISTANCE,
        "fuel_amount": _VOLUME_STORAGE,
        "fuel_amount_gal": _VOLUME_STORAGE,
        "fuel_capacity": _VOLUME_STORAGE,
        "fuel_capacity_gal": _VOLUME_STORAGE,
        # "FUEL LEVEL IN GAL" reports liters upstream, hence the double suffix.
        "fuel_level": _PLAIN_MEASUREMENT,
        "fuel_level_in_gal": _PLAIN_MEASUREMENT,
        "fuel_level_in_gal_gal": _PLAIN_MEASUREMENT,
        "lifetime_fuel_econ": _PLAIN_MEASUREMENT,
        "lifetime_fuel_econ_mpg": _PLAIN_MEASUREMENT,
        "lifetime_fuel_used": _VOLUME_TOTAL,
        "lifetime_fuel_used_gal": _VOLUME_TOTAL,
        "lifetime_energy_used": _ENERGY_TOTAL,
        "ev_battery_level": MetadataRule("battery", _MEASUREMENT),
        "ev_plug_voltage": MetadataRule("voltage", _MEASUREMENT),
        "interm_volt_batt_volt": MetadataRule("voltage", _MEASUREMENT),
        "ev_plug_state": MetadataRule("plug"),
        "ev_charge_state": MetadataRule("battery_charging"),
        "priority_charge_indicator": MetadataRule(),
        "priority_charge_status": MetadataRule(),
        "oil_life": MetadataRule(None, _MEASUREMENT, attributes=True),
        "tire_pressure_lf": _tire("Left Front", "front"),
        "tire_pressure_lr": _tire("Left Rear", "rear"),
        "tire_pressure_rf": _tire("Right Front", "front"),
        "tire_pressure_rr": _tire("Right Rear", "rear"),
        "tire_pressure_placard_front": MetadataRule("pressure", _MEASUREMENT),
        "tire_pressure_placard_rear": MetadataRule("pressure", _MEASUREMENT),
    }
)

_SENSOR_FALLBACK = MetadataRule(None, _MEASUREMENT)
_NO_CLASS_FALLBACK = MetadataRule()


def metadata_for(
    canonical_key: str, kind: SensorKind = SensorKind.SENSOR, *, numeric: bool = True
) -> MetadataRule:
    """Return the metadata rule for *canonical_key*.

    Unknown keys fall back to a ``measurement`` state class for numeric
    sensors and to no class at all for binary or non-numeric sensors.
    """
    rule = METADATA.get(canonical_key)
    if rule is not None:
        return rule
    if kind is SensorKind.BINARY_SENSOR or not numeric:
        return _NO_CLASS_FALLBACK
    return _SENSOR_FALLBACK


def attributes_template(rule: MetadataRule, canonical_key: str) -> str | None:
    """Build the ``json_attributes_template`` for *rule*, if it has one."""
    if not rule.attributes:
        return None
    parts: list[str] = []
    if rule.recommendation:
        parts.append(f"'recommendation': value_json.{rule.recommendation}")
    parts.append(f"'message': value_json.{canonical_key}_message")
    return "{{ {" + ", ".join(parts) + "} | tojson }}"
