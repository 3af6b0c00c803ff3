"""Service wiring: account client + bus + controller + dispatcher."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
import signal
from collections.abc import Coroutine
from typing import Any

from onstar2mqtt._redact import redact_for_log
from onstar2mqtt.account import AccountClient, get_current_vehicle, load_client_factory
from onstar2mqtt.bus import Bus, MqttBus, Will, encode
from onstar2mqtt.commands import Commands
from onstar2mqtt.config import MqttConfig, OnStarConfig
from onstar2mqtt.controller import PublishCycleController
from onstar2mqtt.dispatcher import CommandDispatcher
from onstar2mqtt.payloads import device_tracker_config_payload
from onstar2mqtt.topics import Topics

_logger = logging.getLogger(__name__)

# Milliseconds, digits only.
_INTERVAL = re.compile(r"[0-9]+")


class Bridge:
    """One bridged vehicle: its topics, controller and dispatcher."""

    def __init__(
        self,
        onstar_config: OnStarConfig,
        mqtt_config: MqttConfig,
        commands: Commands,
        bus: Bus,
        topics: Topics,
    ) -> None:
        self._onstar_config = onstar_config
        self._bus = bus
        self.topics = topics
        self.controller = PublishCycleController(
            commands,
            bus,
            topics,
            polling_status_topic=mqtt_config.polling_status_topic,
            refresh_interval_ms=onstar_config.refresh_interval_ms,
        )
        self.dispatcher = CommandDispatcher(commands, bus, topics)
        self._background: set[asyncio.Task[None]] = set()

    async def setup(self) -> None:
        """Announce availability, discovery of the tracker, and subscribe."""
        await self._bus.publish(self.topics.availability, "true", retain=True)
        _logger.debug("Published availability")
        await self._bus.publish(
            self.topics.device_tracker_config,
            encode(device_tracker_config_payload(self.topics)),
            retain=True,
        )
        await self.publish_refresh_interval()
        await self._bus.subscribe(self.topics.refresh_interval)
        if self._onstar_config.allow_commands:
            await self._bus.subscribe(self.topics.command)
            _logger.info("Subscribed to command topic: %s", self.topics.command)

    def on_message(self, topic: str, payload: bytes) -> None:
        """Route an inbound message; runs on the event loop."""
        if topic == self.topics.refresh_interval:
            self._spawn(self.handle_refresh_interval(payload))
        elif topic == self.topics.command and self._onstar_config.allow_commands:
            self.dispatcher.submit(topic, payload)
        else:
            _logger.debug("Ignoring message on unexpected topic %s", topic)

    async def handle_refresh_interval(self, payload: bytes | str) -> None:
        text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
        if not _INTERVAL.fullmatch(text.strip()):
            _logger.error("Invalid refresh interval %r", text)
            return
        interval = int(text.strip())
        try:
            self.controller.set_refresh_interval(interval)
        except ValueError as exc:
            _logger.error("Rejected refresh interval: %s", exc)
            return
        _logger.info("Refresh interval set to %s ms", interval)
        try:
            await self.publish_refresh_interval()
        except Exception:
            _logger.error("Could not publish refresh interval", exc_info=True)

    async def publish_refresh_interval(self) -> None:
        await self._bus.publish(
            self.topics.refresh_interval_current_val,
            str(self.controller.refresh_interval_ms),
            retain=True,
        )

    async def shutdown(self) -> None:
        await self.dispatcher.drain()
        for task in list(self._background):
            task.cancel()
        await self._bus.publish(self.topics.availability, "false", retain=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)


async def run_service(
    onstar_config: OnStarConfig,
    mqtt_config: MqttConfig,
    client: AccountClient | None = None,
) -> None:
    """Run the bridge until SIGINT/SIGTERM."""
    _logger.info("OnStar config: %s", redact_for_log(onstar_config))
    _logger.info("MQTT config: %s", redact_for_log(mqtt_config))

    if client is None:
        client = load_client_factory(onstar_config.client_factory)(onstar_config)

    vehicle = await get_current_vehicle(client, onstar_config.vin)
    _logger.info("Bridging vehicle %s (%s)", vehicle, vehicle.vin)
    topics = Topics(vehicle, mqtt_config.prefix, mqtt_config.name_prefix)
    commands = Commands(client, vehicle)

    bus = MqttBus(mqtt_config, will=Will(topics.availability, "false", retain=True))
    bridge = Bridge(onstar_config, mqtt_config, commands, bus, topics)
    bus.on_message(bridge.on_message)
    await bus.connect()

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    try:
        await bridge.setup()
        await bridge.controller.run_forever(stop)
        _logger.info("Shutting down")
        await bridge.shutdown()
    finally:
        await bus.disconnect()
