"""Command dispatcher.

Listens on the command topic. For an allowed command it publishes
``{"Command": "Sent"}`` to ``{topic}/{command}/state``, runs the command,
then publishes either ``{"Command": "Completed Successfully"}`` or
``{"Command": {"error": {...}}}`` to the same topic. Unknown commands are
logged and dropped without any publish.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from onstar2mqtt._redact import redact_for_log
from onstar2mqtt.account import command_body
from onstar2mqtt.bus import Bus, encode
from onstar2mqtt.commands import Commands
from onstar2mqtt.exceptions import CommandNotFoundError, error_payload
from onstar2mqtt.models.commands import CommandRequest
from onstar2mqtt.topics import Topics

_logger = logging.getLogger(__name__)

SENT = "Sent"
COMPLETED = "Completed Successfully"


class CommandDispatcher:
    """Turn command-topic messages into account calls and status publishes."""

    def __init__(self, commands: Commands, bus: Bus, topics: Topics) -> None:
        self._commands = commands
        self._bus = bus
        self._topics = topics
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, topic: str, payload: bytes) -> None:
        """Schedule :meth:`handle_message` without blocking the caller."""
        task = asyncio.get_running_loop().create_task(self.handle_message(topic, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every in-flight command to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def handle_message(self, topic: str, payload: bytes | str) -> None:
        """Handle one inbound message. Never raises."""
        try:
            await self._handle(topic, payload)
        except CommandNotFoundError as exc:
            _logger.error("Command not found: %s", exc.command)
        except Exception:
            _logger.error("Command handling failed topic=%s", topic, exc_info=True)

    async def _handle(self, topic: str, payload: bytes | str) -> None:
        try:
            request = CommandRequest.model_validate_json(payload)
        except ValidationError as exc:
            _logger.error("Malformed command message topic=%s: %s", topic, exc.errors(include_input=False))
            return

        command = request.command
        handler = self._commands.require(command)
        status_topic = self._topics.command_status_topic(command, topic)

        _logger.warning("Command sent: %s", command)
        _logger.info("Command status topic: %s", status_topic)
        await self._publish_status(status_topic, SENT)

        try:
            result = await handler(request.options)
        except Exception as exc:
            error = {"error": error_payload(exc)}
            _logger.error("Command error command=%s error=%s", command, redact_for_log(error))
            await self._publish_status(status_topic, error)
            return

        _logger.warning("Command completed: %s", command)
        await self._publish_status(status_topic, COMPLETED)
        await self._handle_result(command, result)

    async def _handle_result(self, command: str, result: Any) -> None:
        body = command_body(result)
        location = body.get("location")
        if isinstance(location, dict):
            state_topic = self._topics.state_topic(command)
            await self._bus.publish(
                state_topic,
                encode({"latitude": location.get("lat"), "longitude": location.get("long")}),
                retain=True,
            )
            _logger.warning("Published location to topic %s", state_topic)
        if body.get("diagnosticResponse"):
            _logger.info("Received diagnostics for command %s", command)

    async def _publish_status(self, topic: str, status: Any) -> None:
        await self._bus.publish(topic, encode({"Command": status}), retain=True)
