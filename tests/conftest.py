from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from onstar2mqtt.models.vehicle import Vehicle
from onstar2mqtt.topics import Topics

DATA_DIR = Path(__file__).parent / "data"


def load_sample() -> dict[str, Any]:
    with (DATA_DIR / "diagnostic_sample.json").open(encoding="utf-8") as handle:
        return json.load(handle)


def wrap_response(data: dict[str, Any], status: str = "success") -> dict[str, Any]:
    return {"status": status, "response": {"data": data}}


@dataclass
class RecordingBus:
    """In-memory bus recording every publish in order."""

    publishes: list[tuple[str, str, bool]] = field(default_factory=list)
    subscriptions: list[str] = field(default_factory=list)
    fail_topics: set[str] = field(default_factory=set)

    async def publish(self, topic: str, payload: str, *, retain: bool = False) -> None:
        if topic in self.fail_topics:
            raise ConnectionError(f"broker rejected {topic}")
        self.publishes.append((topic, payload, retain))

    async def subscribe(self, topic: str) -> None:
        self.subscriptions.append(topic)

    def topics(self) -> list[str]:
        return [topic for topic, _payload, _retain in self.publishes]

    def payloads(self, topic: str) -> list[Any]:
        return [json.loads(payload) for t, payload, _retain in self.publishes if t == topic]

    def last(self, topic: str) -> Any:
        return self.payloads(topic)[-1]


@dataclass
class FakeAccountClient:
    """Account client double answering from canned responses."""

    vehicles: list[dict[str, Any]] = field(default_factory=list)
    diagnostics_data: dict[str, Any] | None = None
    location_data: dict[str, Any] | None = None
    errors: dict[str, Exception] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, Any] | None]] = field(default_factory=list)

    async def _call(self, name: str, request: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((name, request))
        if name in self.errors:
            raise self.errors[name]
        if name == "get_account_vehicles":
            return wrap_response({"vehicles": {"size": str(len(self.vehicles)), "vehicle": self.vehicles}})
        if name == "diagnostics":
            return wrap_response(copy.deepcopy(self.diagnostics_data if self.diagnostics_data is not None else {}))
        if name == "location":
            return wrap_response(self.location_data or {})
        return wrap_response({"commandResponse": {"status": "success", "type": name}})

    async def get_account_vehicles(self) -> dict[str, Any]:
        return await self._call("get_account_vehicles")

    async def diagnostics(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._call("diagnostics", request)

    async def start(self) -> dict[str, Any]:
        return await self._call("start")

    async def cancel_start(self) -> dict[str, Any]:
        return await self._call("cancel_start")

    async def alert(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._call("alert", request)

    async def cancel_alert(self) -> dict[str, Any]:
        return await self._call("cancel_alert")

    async def lock_door(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._call("lock_door", request)

    async def unlock_door(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._call("unlock_door", request)

    async def charge_override(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._call("charge_override", request)

    async def get_charging_profile(self) -> dict[str, Any]:
        return await self._call("get_charging_profile")

    async def set_charging_profile(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._call("set_charging_profile", request)

    async def location(self) -> dict[str, Any]:
        return await self._call("location")

    def call_names(self) -> list[str]:
        return [name for name, _request in self.calls]


@pytest.fixture
def sample() -> dict[str, Any]:
    return load_sample()


@pytest.fixture
def vehicle() -> Vehicle:
    return Vehicle(make="foo", model="bar", vin="XXX", year=2020)


@pytest.fixture
def topics(vehicle: Vehicle) -> Topics:
    return Topics(vehicle)


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def client(sample: dict[str, Any]) -> FakeAccountClient:
    return FakeAccountClient(
        vehicles=[
            {
                "vin": "XXX",
                "make": "foo",
                "model": "bar",
                "year": "2020",
                "commands": {
                    "command": [
                        {"name": "getLocation"},
                        {
                            "name": "diagnostics",
                            "commandData": {
                                "supportedDiagnostics": {
                                    "supportedDiagnostic": ["ODOMETER", "TIRE PRESSURE", "FUEL TANK INFO"]
                                }
                            },
                        },
                    ]
                },
            }
        ],
        diagnostics_data=sample,
        location_data={
            "commandResponse": {
                "status": "success",
                "body": {"location": {"lat": "43.6532", "long": "-79.3832"}},
            }
        },
    )
