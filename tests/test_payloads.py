from __future__ import annotations

import json
from typing import Any

import pytest

from onstar2mqtt.bus import encode
from onstar2mqtt.models.diagnostic import Diagnostic, DiagnosticElement
from onstar2mqtt.models.vehicle import Vehicle
from onstar2mqtt.payloads import build_config_payload, build_state_payload, device_tracker_config_payload
from onstar2mqtt.topics import Topics

DEVICE = {
    "identifiers": ["XXX"],
    "manufacturer": "foo",
    "model": 2020,
    "name": "2020 foo bar",
}


def _diagnostic(sample: dict[str, Any], name: str) -> Diagnostic:
    records = sample["commandResponse"]["body"]["diagnosticResponse"]
    return Diagnostic.from_response(next(r for r in records if r["name"] == name))


def _element(diagnostic: Diagnostic, name: str) -> DiagnosticElement:
    return next(e for e in diagnostic.elements if e.name == name)


# ------------------------------------------------------------------
# Discovery config
# ------------------------------------------------------------------


def test_sensor_config(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "AMBIENT AIR TEMPERATURE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "AMBIENT AIR TEMPERATURE"))
    assert payload == {
        "availability_topic": "homeassistant/XXX/available",
        "device": DEVICE,
        "device_class": "temperature",
        "name": "Ambient Air Temperature",
        "payload_available": "true",
        "payload_not_available": "false",
        "state_topic": "homeassistant/sensor/XXX/ambient_air_temperature/state",
        "unique_id": "xxx-ambient-air-temperature",
        "value_template": "{{ value_json.ambient_air_temperature }}",
        "state_class": "measurement",
        "unit_of_measurement": "°C",
    }


def test_converted_sensor_config(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "AMBIENT AIR TEMPERATURE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "AMBIENT AIR TEMPERATURE F"))
    assert payload["name"] == "Ambient Air Temperature F"
    assert payload["unit_of_measurement"] == "°F"
    assert payload["device_class"] == "temperature"
    assert payload["unique_id"] == "xxx-ambient-air-temperature-f"
    assert payload["value_template"] == "{{ value_json.ambient_air_temperature_f }}"
    assert payload["state_topic"] == "homeassistant/sensor/XXX/ambient_air_temperature/state"


def test_odometer_config(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "ODOMETER")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "ODOMETER MI"))
    assert payload["name"] == "Odometer Mi"
    assert payload["device_class"] == "distance"
    assert payload["state_class"] == "total_increasing"
    assert payload["unit_of_measurement"] == "mi"


def test_binary_sensor_config(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "EV CHARGE STATE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "PRIORITY CHARGE INDICATOR"))
    assert payload == {
        "availability_topic": "homeassistant/XXX/available",
        "device": DEVICE,
        "name": "Priority Charge Indicator",
        "payload_available": "true",
        "payload_not_available": "false",
        "payload_on": True,
        "payload_off": False,
        "state_topic": "homeassistant/binary_sensor/XXX/ev_charge_state/state",
        "unique_id": "xxx-priority-charge-indicator",
        "value_template": "{{ value_json.priority_charge_indicator }}",
    }


def test_binary_sensor_device_class(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "EV PLUG STATE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "EV PLUG STATE"))
    assert payload["name"] == "Ev Plug State"
    assert payload["device_class"] == "plug"
    assert "unit_of_measurement" not in payload
    assert "state_class" not in payload


def test_tire_pressure_config_has_attributes(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "TIRE PRESSURE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "TIRE PRESSURE LF"))
    assert payload == {
        "availability_topic": "homeassistant/XXX/available",
        "device": DEVICE,
        "device_class": "pressure",
        "json_attributes_template": (
            "{{ {'recommendation': value_json.tire_pressure_placard_front, "
            "'message': value_json.tire_pressure_lf_message} | tojson }}"
        ),
        "json_attributes_topic": "homeassistant/sensor/XXX/tire_pressure/state",
        "name": "Tire Pressure: Left Front",
        "payload_available": "true",
        "payload_not_available": "false",
        "state_class": "measurement",
        "state_topic": "homeassistant/sensor/XXX/tire_pressure/state",
        "unique_id": "xxx-tire-pressure-lf",
        "unit_of_measurement": "kPa",
        "value_template": "{{ value_json.tire_pressure_lf }}",
    }


def test_rear_tire_uses_rear_placard(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "TIRE PRESSURE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "TIRE PRESSURE RR"))
    assert "value_json.tire_pressure_placard_rear" in payload["json_attributes_template"]
    assert payload["name"] == "Tire Pressure: Right Rear"


def test_oil_life_config(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "OIL LIFE")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "OIL LIFE"))
    assert payload["json_attributes_template"] == "{{ {'message': value_json.oil_life_message} | tojson }}"
    assert payload["json_attributes_topic"] == "homeassistant/sensor/XXX/oil_life/state"
    assert payload["unit_of_measurement"] == "%"
    assert "device_class" not in payload


def test_unitless_sensor_omits_unit(topics: Topics) -> None:
    diagnostic = Diagnostic.build("LAST TRIP", [{"name": "LAST TRIP", "value": "3", "unit": "XXX"}])
    payload = build_config_payload(topics, diagnostic, diagnostic.elements[0])
    assert "unit_of_measurement" not in payload
    assert payload["state_class"] == "measurement"


def test_non_numeric_sensor_has_no_state_class(topics: Topics) -> None:
    diagnostic = Diagnostic.build(
        "EV ESTIMATED CHARGE END",
        [{"name": "EV ESTIMATED CHARGE END", "value": "2021-01-01T07:00", "unit": "N/A"}],
    )
    payload = build_config_payload(topics, diagnostic, diagnostic.elements[0])
    assert "state_class" not in payload
    assert "unit_of_measurement" not in payload
    assert payload["value_template"] == "{{ value_json.ev_estimated_charge_end }}"


def test_sensor_without_reading_keeps_state_class_when_it_has_a_unit(topics: Topics) -> None:
    diagnostic = Diagnostic.build("ENGINE RPM", [{"name": "ENGINE RPM", "value": None, "unit": "RPM"}])
    payload = build_config_payload(topics, diagnostic, diagnostic.elements[0])
    assert payload["state_class"] == "measurement"


def test_name_prefix_applies_to_entity_names(sample: dict[str, Any], vehicle: Vehicle) -> None:
    topics = Topics(vehicle, name_prefix="Bolt")
    diagnostic = _diagnostic(sample, "ODOMETER")
    payload = build_config_payload(topics, diagnostic, _element(diagnostic, "ODOMETER"))
    assert payload["name"] == "Bolt Odometer"


def test_config_payload_is_deterministic(sample: dict[str, Any], topics: Topics) -> None:
    diagnostic = _diagnostic(sample, "TIRE PRESSURE")
    element = _element(diagnostic, "TIRE PRESSURE RF")
    first = encode(build_config_payload(topics, diagnostic, element))
    second = encode(build_config_payload(topics, diagnostic, element))
    assert first == second


# ------------------------------------------------------------------
# State
# ------------------------------------------------------------------


def test_state_payload_with_conversion(sample: dict[str, Any]) -> None:
    assert build_state_payload(_diagnostic(sample, "AMBIENT AIR TEMPERATURE")) == {
        "ambient_air_temperature": 15,
        "ambient_air_temperature_message": "na",
        "ambient_air_temperature_f": 59,
        "ambient_air_temperature_f_message": "na",
    }


def test_fuel_tank_state(sample: dict[str, Any]) -> None:
    assert build_state_payload(_diagnostic(sample, "FUEL TANK INFO")) == {
        "fuel_amount": 19.98,
        "fuel_amount_message": "na",
        "fuel_capacity": 60,
        "fuel_capacity_message": "na",
        "fuel_level": 33.3,
        "fuel_level_message": "na",
        "fuel_level_in_gal": 19.98,
        "fuel_level_in_gal_message": "na",
        "fuel_amount_gal": 5.3,
        "fuel_amount_gal_message": "na",
        "fuel_capacity_gal": 15.9,
        "fuel_capacity_gal_message": "na",
        "fuel_level_in_gal_gal": 5.3,
        "fuel_level_in_gal_gal_message": "na",
    }


def test_binary_state_uses_booleans(sample: dict[str, Any]) -> None:
    assert build_state_payload(_diagnostic(sample, "EV CHARGE STATE")) == {
        "ev_charge_state": False,
        "ev_charge_state_message": "charging_complete",
        "priority_charge_indicator": False,
        "priority_charge_indicator_message": "na",
        "priority_charge_status": False,
        "priority_charge_status_message": "na",
    }


def test_tire_pressure_state(sample: dict[str, Any]) -> None:
    state = build_state_payload(_diagnostic(sample, "TIRE PRESSURE"))
    assert list(state) == [
        "tire_pressure_lf",
        "tire_pressure_lf_message",
        "tire_pressure_lr",
        "tire_pressure_lr_message",
        "tire_pressure_placard_front",
        "tire_pressure_placard_front_message",
        "tire_pressure_placard_rear",
        "tire_pressure_placard_rear_message",
        "tire_pressure_rf",
        "tire_pressure_rf_message",
        "tire_pressure_rr",
        "tire_pressure_rr_message",
    ]
    assert state["tire_pressure_lf"] == 240
    assert state["tire_pressure_lf_message"] == "YELLOW"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("ODOMETER", {"odometer": 6013.8, "odometer_mi": 3736.8}),
        ("LIFETIME FUEL ECON", {"lifetime_fuel_econ": 11.86, "lifetime_fuel_econ_mpg": 27.9}),
        ("LIFETIME FUEL USED", {"lifetime_fuel_used": 4476.94, "lifetime_fuel_used_gal": 1182.7}),
    ],
)
def test_converted_state_values(sample: dict[str, Any], name: str, expected: dict[str, Any]) -> None:
    state = build_state_payload(_diagnostic(sample, name))
    assert {key: state[key] for key in expected} == expected


def test_non_numeric_value_passes_through() -> None:
    diagnostic = Diagnostic.build("HOTSPOT CONFIG", [{"name": "HOTSPOT SSID", "value": "MyCar", "unit": "N/A"}])
    assert build_state_payload(diagnostic) == {"hotspot_ssid": "MyCar", "hotspot_ssid_message": "na"}


def test_empty_diagnostic_state() -> None:
    assert build_state_payload(Diagnostic(name="VEHICLE RANGE")) == {}


# ------------------------------------------------------------------
# Device tracker
# ------------------------------------------------------------------


def test_device_tracker_config(topics: Topics) -> None:
    payload = device_tracker_config_payload(topics)
    assert payload == {
        "availability_topic": "homeassistant/XXX/available",
        "device": DEVICE,
        "json_attributes_topic": "homeassistant/device_tracker/XXX/getlocation/state",
        "name": "Location",
        "payload_available": "true",
        "payload_not_available": "false",
        "unique_id": "xxx-getlocation",
    }
    assert json.loads(encode(payload)) == payload
