"""Discovery and state payload builders.

Pure functions: identical inputs always give identical payloads, so
re-publishing a discovery config is byte-identical.
"""

from __future__ import annotations

from typing import Any

from onstar2mqtt.models.diagnostic import Diagnostic, DiagnosticElement
from onstar2mqtt.normalize import coerce_value
from onstar2mqtt.rules import (
    LOCATION_COMMAND,
    SensorKind,
    attributes_template,
    classify_sensor_kind,
    metadata_for,
)
from onstar2mqtt.topics import Topics, canonical_key, friendly_name


def _device(topics: Topics) -> dict[str, Any]:
    vehicle = topics.vehicle
    return {
        "identifiers": [vehicle.vin],
        "manufacturer": vehicle.make,
        "model": vehicle.year,
        "name": vehicle.display_name,
    }


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _is_numeric(element: DiagnosticElement) -> bool:
    value = coerce_value(element.value)
    if value is None:
        # No reading yet; a unit still marks it as a measurement.
        return element.unit is not None
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_config_payload(topics: Topics, diagnostic: Diagnostic, element: DiagnosticElement) -> dict[str, Any]:
    """Discovery config for *element*, whose state lives in *diagnostic*'s topic."""
    key = canonical_key(element.name)
    kind = classify_sensor_kind(element.name)
    rule = metadata_for(key, kind, numeric=_is_numeric(element))
    state_topic = topics.state_topic(diagnostic.name)
    template = attributes_template(rule, key)

    payload: dict[str, Any] = {
        "availability_topic": topics.availability,
        "device": _device(topics),
        "device_class": rule.device_class,
        "name": topics.entity_name(rule.friendly_name or friendly_name(element.name)),
        "payload_available": "true",
        "payload_not_available": "false",
        "state_topic": state_topic,
        "unique_id": topics.unique_id(element.name),
        "value_template": f"{{{{ value_json.{key} }}}}",
        "json_attributes_topic": state_topic if template else None,
        "json_attributes_template": template,
    }
    if kind is SensorKind.BINARY_SENSOR:
        payload["payload_on"] = True
        payload["payload_off"] = False
    else:
        payload["state_class"] = rule.state_class
        payload["unit_of_measurement"] = element.unit
    return _compact(payload)


def build_state_payload(diagnostic: Diagnostic) -> dict[str, Any]:
    """Merged state of every element (and converted companion) of *diagnostic*.

    Each reading is paired with a ``<key>_message`` entry. On a key
    collision the later element wins.
    """
    state: dict[str, Any] = {}
    for element in diagnostic.elements:
        key = canonical_key(element.name)
        state[key] = coerce_value(element.value)
        state[f"{key}_message"] = element.message
    return state


def device_tracker_config_payload(topics: Topics) -> dict[str, Any]:
    """Discovery config of the vehicle location tracker.

    The tracker reads latitude/longitude from the JSON attributes the
    location command publishes on its own state topic.
    """
    location_topic = topics.state_topic(LOCATION_COMMAND)
    return {
        "availability_topic": topics.availability,
        "device": _device(topics),
        "json_attributes_topic": location_topic,
        "name": topics.entity_name("Location"),
        "payload_available": "true",
        "payload_not_available": "false",
        "unique_id": topics.unique_id(LOCATION_COMMAND),
    }
