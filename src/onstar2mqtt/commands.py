"""Remote command registry.

:class:`Commands` maps every :class:`RemoteCommand` name to a typed
handler that validates the bus options and calls the account client.
Names outside the enum never resolve.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from onstar2mqtt.account import AccountClient, Response
from onstar2mqtt.exceptions import CommandNotFoundError
from onstar2mqtt.models.commands import (
    DIAGNOSTIC_ITEMS,
    AlertAction,
    AlertOptions,
    ChargeOverrideMode,
    ChargeOverrideOptions,
    ChargingProfileOptions,
    DiagnosticsOptions,
    DoorOptions,
    NoOptions,
    RemoteCommand,
)
from onstar2mqtt.models.vehicle import Vehicle

_logger = logging.getLogger(__name__)

Options = Mapping[str, Any] | None
Handler = Callable[[Options], Awaitable[Response]]


def _merged(defaults: Mapping[str, Any], options: Options) -> dict[str, Any]:
    merged = dict(defaults)
    merged.update(options or {})
    return merged


class Commands:
    """Remote operations exposed on the command topic."""

    def __init__(self, client: AccountClient, vehicle: Vehicle | None = None) -> None:
        self._client = client
        self._vehicle = vehicle
        self._handlers: dict[RemoteCommand, Handler] = {
            RemoteCommand.GET_ACCOUNT_VEHICLES: self.get_account_vehicles,
            RemoteCommand.START_VEHICLE: self.start_vehicle,
            RemoteCommand.CANCEL_START_VEHICLE: self.cancel_start_vehicle,
            RemoteCommand.ALERT: self.alert,
            RemoteCommand.ALERT_FLASH: self.alert_flash,
            RemoteCommand.ALERT_HONK: self.alert_honk,
            RemoteCommand.CANCEL_ALERT: self.cancel_alert,
            RemoteCommand.LOCK_DOOR: self.lock_door,
            RemoteCommand.UNLOCK_DOOR: self.unlock_door,
            RemoteCommand.CHARGE_OVERRIDE: self.charge_override,
            RemoteCommand.CANCEL_CHARGE_OVERRIDE: self.cancel_charge_override,
            RemoteCommand.GET_CHARGING_PROFILE: self.get_charging_profile,
            RemoteCommand.SET_CHARGING_PROFILE: self.set_charging_profile,
            RemoteCommand.DIAGNOSTICS: self.diagnostics,
            RemoteCommand.GET_LOCATION: self.get_location,
        }

    @property
    def names(self) -> list[str]:
        return [command.value for command in self._handlers]

    def resolve(self, name: str) -> Handler | None:
        """Return the handler for *name*, or ``None`` if not allowed."""
        try:
            command = RemoteCommand(name)
        except ValueError:
            return None
        return self._handlers[command]

    def require(self, name: str) -> Handler:
        handler = self.resolve(name)
        if handler is None:
            raise CommandNotFoundError(name)
        return handler

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def get_account_vehicles(self, options: Options = None) -> Response:
        NoOptions.model_validate(options or {})
        return await self._client.get_account_vehicles()

    async def start_vehicle(self, options: Options = None) -> Response:
        NoOptions.model_validate(options or {})
        return await self._client.start()

    async def cancel_start_vehicle(self, options: Options = None) -> Response:
        NoOptions.model_validate(options or {})
        return await self._client.cancel_start()

    async def alert(self, options: Options = None) -> Response:
        opts = AlertOptions.model_validate(options or {})
        return await self._client.alert(opts.to_request())

    async def alert_flash(self, options: Options = None) -> Response:
        return await self.alert(_merged({"action": [AlertAction.FLASH]}, options))

    async def alert_honk(self, options: Options = None) -> Response:
        return await self.alert(_merged({"action": [AlertAction.HONK]}, options))

    async def cancel_alert(self, options: Options = None) -> Response:
        NoOptions.model_validate(options or {})
        return await self._client.cancel_alert()

    async def lock_door(self, options: Options = None) -> Response:
        opts = DoorOptions.model_validate(options or {})
        return await self._client.lock_door(opts.to_request())

    async def unlock_door(self, options: Options = None) -> Response:
        opts = DoorOptions.model_validate(options or {})
        return await self._client.unlock_door(opts.to_request())

    async def charge_override(self, options: Options = None) -> Response:
        opts = ChargeOverrideOptions.model_validate(options or {})
        return await self._client.charge_override(opts.to_request())

    async def cancel_charge_override(self, options: Options = None) -> Response:
        return await self.charge_override(_merged({"mode": ChargeOverrideMode.CANCEL_OVERRIDE}, options))

    async def get_charging_profile(self, options: Options = None) -> Response:
        NoOptions.model_validate(options or {})
        return await self._client.get_charging_profile()

    async def set_charging_profile(self, options: Options = None) -> Response:
        opts = ChargingProfileOptions.model_validate(options or {})
        return await self._client.set_charging_profile(opts.to_request())

    async def diagnostics(self, options: Options = None) -> Response:
        opts = DiagnosticsOptions.model_validate(options or {})
        if not opts.diagnostic_item:
            items = self._vehicle.supported_diagnostics() if self._vehicle is not None else []
            opts = opts.model_copy(update={"diagnostic_item": items or list(DIAGNOSTIC_ITEMS)})
        _logger.debug("Requesting diagnostics: %s", opts.diagnostic_item)
        return await self._client.diagnostics(opts.to_request())

    async def get_location(self, options: Options = None) -> Response:
        NoOptions.model_validate(options or {})
        return await self._client.location()
