"""Account API contract and response helpers.

The bridge never talks to the vehicle cloud itself. It drives an
:class:`AccountClient` supplied by the deployment (see
:func:`load_client_factory`), which owns authentication, request status
polling and retries.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError

from onstar2mqtt.config import OnStarConfig
from onstar2mqtt.exceptions import ConfigError, FetchError, VehicleNotFoundError
from onstar2mqtt.models.diagnostic import Diagnostic
from onstar2mqtt.models.vehicle import Vehicle

_logger = logging.getLogger(__name__)

Response = dict[str, Any]


class AccountClient(Protocol):
    """Structural interface of the account API client.

    Every call resolves to ``{"status": ..., "response": {"data": ...}}``
    or raises. Having a protocol here makes it easy to pass test doubles.
    """

    async def get_account_vehicles(self) -> Response: ...

    async def diagnostics(self, request: dict[str, Any]) -> Response: ...

    async def start(self) -> Response: ...

    async def cancel_start(self) -> Response: ...

    async def alert(self, request: dict[str, Any]) -> Response: ...

    async def cancel_alert(self) -> Response: ...

    async def lock_door(self, request: dict[str, Any]) -> Response: ...

    async def unlock_door(self, request: dict[str, Any]) -> Response: ...

    async def charge_override(self, request: dict[str, Any]) -> Response: ...

    async def get_charging_profile(self) -> Response: ...

    async def set_charging_profile(self, request: dict[str, Any]) -> Response: ...

    async def location(self) -> Response: ...


def dig(data: Any, *path: str) -> Any:
    """Walk nested dicts along *path*, returning ``None`` on any miss."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def command_body(result: Any) -> dict[str, Any]:
    """Return ``response.data.commandResponse.body`` of a command result."""
    body = dig(result, "response", "data", "commandResponse", "body")
    return body if isinstance(body, dict) else {}


def parse_vehicles(result: Any) -> list[Vehicle]:
    entries = dig(result, "response", "data", "vehicles", "vehicle")
    if not isinstance(entries, list):
        raise FetchError("Vehicle list missing from account response")
    vehicles: list[Vehicle] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            vehicles.append(Vehicle.model_validate(entry))
        except ValidationError as exc:
            _logger.warning(
                "Skipping malformed vehicle entry vin=%r: %s", entry.get("vin"), exc.errors(include_input=False)
            )
    return vehicles


def parse_diagnostics(result: Any) -> list[Diagnostic]:
    entries = command_body(result).get("diagnosticResponse")
    if not isinstance(entries, list):
        raise FetchError("diagnosticResponse missing from account response")
    return [Diagnostic.from_response(entry) for entry in entries]


async def get_vehicles(client: AccountClient) -> list[Vehicle]:
    _logger.info("Requesting vehicles")
    try:
        result = await client.get_account_vehicles()
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Vehicle request failed: {exc}") from exc
    _logger.info("Vehicle request status: %s", dig(result, "status"))
    vehicles = parse_vehicles(result)
    _logger.debug("Vehicle request response: %s", [str(v) for v in vehicles])
    return vehicles


async def get_current_vehicle(client: AccountClient, vin: str) -> Vehicle:
    """Return the account vehicle matching *vin* (case-insensitive)."""
    for vehicle in await get_vehicles(client):
        if vehicle.vin.lower() == vin.lower():
            return vehicle
    raise VehicleNotFoundError(f"Configured vehicle VIN {vin} not available in account vehicles", vin=vin)


def load_client_factory(path: str | None) -> Callable[[OnStarConfig], AccountClient]:
    """Resolve a ``"package.module:callable"`` account client factory."""
    if not path:
        raise ConfigError("ONSTAR_CLIENT_FACTORY is required (format: 'package.module:callable')")
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"ONSTAR_CLIENT_FACTORY must look like 'package.module:callable', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import account client module {module_name!r}: {exc}") from exc
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigError(f"{path!r} is not a callable")
    return factory
