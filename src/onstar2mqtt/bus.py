"""Message bus transport.

:class:`MqttBus` wraps a threaded paho-mqtt client for asyncio callers:
publishes are awaited in the default executor and inbound messages are
handed to the event loop with ``call_soon_threadsafe``. Reconnection is
left to paho's network loop; subscriptions are renewed on every connect.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from onstar2mqtt.config import MqttConfig
from onstar2mqtt.exceptions import TransportError

MessageCallback = Callable[[str, bytes], None]


class Bus(Protocol):
    """Structural bus interface used by the controller and dispatcher."""

    async def publish(self, topic: str, payload: str, *, retain: bool = False) -> None: ...

    async def subscribe(self, topic: str) -> None: ...


def encode(payload: Any) -> str:
    """Serialize a payload for the bus; strings are sent as-is."""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, ensure_ascii=False)


@dataclass(frozen=True)
class Will:
    """Last-will message registered at connect time."""

    topic: str
    payload: str
    retain: bool = True


class MqttBus:
    """asyncio facade over a paho-mqtt client running its own network thread."""

    def __init__(
        self,
        config: MqttConfig,
        *,
        will: Will | None = None,
        client_id: str = "",
        publish_timeout: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._will = will
        self._client_id = client_id
        self._publish_timeout = publish_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._subscriptions: list[str] = []
        self._callbacks: list[MessageCallback] = []

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected()

    def on_message(self, callback: MessageCallback) -> None:
        """Register *callback(topic, payload)*; it runs on the event loop."""
        self._callbacks.append(callback)

    async def connect(self, timeout: float = 30.0) -> None:
        """Connect to the broker and wait for the CONNACK."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        config = self._config
        self._logger.info("Connecting to MQTT url=%s username=%s", config.url, config.username)

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if config.username:
            client.username_pw_set(config.username, config.password)
        if self._will is not None:
            client.will_set(self._will.topic, self._will.payload, retain=self._will.retain)
        if config.tls:
            client.tls_set()

        connected: asyncio.Future[None] = loop.create_future()

        def _resolve(error: Exception | None) -> None:
            if connected.done():
                return
            if error is None:
                connected.set_result(None)
            else:
                connected.set_exception(error)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                loop.call_soon_threadsafe(_resolve, TransportError(f"MQTT connect refused: {reason_code}"))
                return
            self._logger.info("Connected to MQTT")
            for topic in self._subscriptions:
                self._logger.debug("MQTT subscribing topic=%s", topic)
                c.subscribe(topic)
            loop.call_soon_threadsafe(_resolve, None)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            loop.call_soon_threadsafe(self._dispatch, msg.topic, bytes(msg.payload))

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            self._logger.warning("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            await loop.run_in_executor(None, client.connect, config.host, config.port, config.keepalive)
        except OSError as exc:
            raise TransportError(f"Cannot reach MQTT broker {config.url}: {exc}") from exc
        client.loop_start()
        self._client = client

        try:
            await asyncio.wait_for(connected, timeout)
        except TimeoutError as exc:
            await self.disconnect()
            raise TransportError(f"Timed out connecting to {config.url}") from exc
        except TransportError:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        client = self._client
        self._client = None
        if client is None:
            return
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, client.disconnect)
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    async def publish(self, topic: str, payload: str, *, retain: bool = False) -> None:
        client = self._require_client()
        info = client.publish(topic, payload, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"Publish failed: {mqtt.error_string(info.rc)}", topic=topic)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, info.wait_for_publish, self._publish_timeout)
        except (RuntimeError, ValueError) as exc:
            raise TransportError(f"Publish failed: {exc}", topic=topic) from exc

    async def subscribe(self, topic: str) -> None:
        if topic not in self._subscriptions:
            self._subscriptions.append(topic)
        client = self._require_client()
        result, _mid = client.subscribe(topic)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"Subscribe failed: {mqtt.error_string(result)}", topic=topic)
        self._logger.info("Subscribed to topic: %s", topic)

    def _require_client(self) -> mqtt.Client:
        if self._client is None:
            raise TransportError("MQTT client not connected. Call 'await bus.connect()' first")
        return self._client

    def _dispatch(self, topic: str, payload: bytes) -> None:
        self._logger.debug("Subscription message topic=%s payload=%r", topic, payload)
        for callback in list(self._callbacks):
            try:
                callback(topic, payload)
            except Exception:
                self._logger.exception("Message callback failed for topic=%s", topic)
