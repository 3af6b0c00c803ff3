"""Publish cycle controller.

One :meth:`PublishCycleController.run` is one polling tick::

    IDLE -> FETCHING -> BUILDING -> PUBLISHING -> DONE
                 \\___________\\____________\\____-> FAILED

A tick always ends in ``DONE`` or ``FAILED``; a failure is reported on the
polling status topic and never raised. Discovery configs are remembered
for the lifetime of the controller, so each one is published once per
process run while state payloads are republished every tick.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any

from onstar2mqtt._redact import redact_for_log
from onstar2mqtt.account import dig, parse_diagnostics
from onstar2mqtt.bus import Bus, encode
from onstar2mqtt.commands import Commands
from onstar2mqtt.config import DEFAULT_REFRESH_INTERVAL_MS
from onstar2mqtt.exceptions import FetchError, error_payload
from onstar2mqtt.models.diagnostic import Diagnostic
from onstar2mqtt.payloads import build_config_payload, build_state_payload
from onstar2mqtt.topics import Topics

_logger = logging.getLogger(__name__)

#: Smallest polling interval accepted at runtime (milliseconds).
MIN_REFRESH_INTERVAL_MS = 60_000

#: Published on the polling status topic after a successful tick.
POLL_OK_PAYLOAD: dict[str, Any] = {"error": {"message": "N/A", "response": {"status": 0, "statusText": "N/A"}}}


class CycleState(enum.StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    BUILDING = "building"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ConfigEntry:
    """A discovery config and whether it went out this process run."""

    payload: dict[str, Any]
    configured: bool = False


@dataclass
class CycleResult:
    """Bookkeeping of one tick, mostly for logs and tests."""

    state: CycleState
    configs_published: int = 0
    states_published: int = 0
    error: dict[str, Any] | None = field(default=None, repr=False)


class PublishCycleController:
    """Polls diagnostics and mirrors them onto the bus."""

    def __init__(
        self,
        commands: Commands,
        bus: Bus,
        topics: Topics,
        *,
        polling_status_topic: str | None = None,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
    ) -> None:
        self._commands = commands
        self._bus = bus
        self._topics = topics
        self._polling_status_topic = polling_status_topic or topics.polling_status
        self._refresh_interval_ms = refresh_interval_ms
        self._configurations: dict[str, ConfigEntry] = {}
        self._interval_changed = asyncio.Event()
        self.state = CycleState.IDLE

    @property
    def configurations(self) -> dict[str, ConfigEntry]:
        return self._configurations

    @property
    def refresh_interval_ms(self) -> int:
        return self._refresh_interval_ms

    @property
    def polling_status_state_topic(self) -> str:
        return f"{self._polling_status_topic}/state"

    @property
    def polling_status_success_topic(self) -> str:
        return f"{self._polling_status_topic}/lastpollsuccessful"

    # ------------------------------------------------------------------
    # One tick
    # ------------------------------------------------------------------

    async def run(self) -> CycleResult:
        """Run one tick. Never raises."""
        try:
            result = await self._run()
        except Exception as exc:
            self.state = CycleState.FAILED
            error = error_payload(exc)
            _logger.error("Error polling data: %s", redact_for_log(error), exc_info=True)
            await self._publish_poll_status({"error": error}, success=False)
            return CycleResult(state=CycleState.FAILED, error=error)
        await self._publish_poll_status(POLL_OK_PAYLOAD, success=True)
        self.state = CycleState.DONE
        _logger.info("Updates complete, sleeping.")
        return result

    async def _run(self) -> CycleResult:
        self.state = CycleState.FETCHING
        diagnostics = await self._fetch()

        self.state = CycleState.BUILDING
        states = self._build(diagnostics)

        self.state = CycleState.PUBLISHING
        publishes = []
        configs_published = 0
        for topic, entry in self._configurations.items():
            if entry.configured:
                continue
            configs_published += 1
            _logger.info("Publishing config topic=%s", topic)
            publishes.append(self._publish_config(topic, entry))
        for topic, state in states.items():
            _logger.info("Publishing state topic=%s", topic)
            _logger.debug("State payload topic=%s payload=%s", topic, state)
            publishes.append(self._bus.publish(topic, encode(state), retain=True))
        results = await asyncio.gather(*publishes, return_exceptions=True)
        for outcome in results:
            if isinstance(outcome, Exception):
                raise outcome
        return CycleResult(state=CycleState.DONE, configs_published=configs_published, states_published=len(states))

    async def _publish_config(self, topic: str, entry: ConfigEntry) -> None:
        # A config that failed to publish is retried on the next tick.
        await self._bus.publish(topic, encode(entry.payload), retain=True)
        entry.configured = True

    async def _fetch(self) -> list[Diagnostic]:
        _logger.info("Requesting diagnostics")
        try:
            response = await self._commands.diagnostics()
        except Exception as exc:
            raise FetchError(f"Diagnostics request failed: {exc}") from exc
        _logger.info("Diagnostic request status: %s", dig(response, "status"))
        diagnostics = parse_diagnostics(response)
        _logger.debug("Diagnostic request response: %s", [d.name for d in diagnostics])
        return diagnostics

    def _build(self, diagnostics: list[Diagnostic]) -> dict[str, dict[str, Any]]:
        states: dict[str, dict[str, Any]] = {}
        for diagnostic in diagnostics:
            if not diagnostic.has_elements():
                continue
            for element in diagnostic.elements:
                topic = self._topics.config_topic(element.name)
                if topic not in self._configurations:
                    self._configurations[topic] = ConfigEntry(
                        payload=build_config_payload(self._topics, diagnostic, element),
                    )
            state_topic = self._topics.state_topic(diagnostic.name)
            states.setdefault(state_topic, {}).update(build_state_payload(diagnostic))
        return states

    async def _publish_poll_status(self, payload: dict[str, Any], *, success: bool) -> None:
        try:
            await self._bus.publish(self.polling_status_state_topic, encode(payload), retain=False)
            await self._bus.publish(self.polling_status_success_topic, "true" if success else "false", retain=False)
        except Exception:
            _logger.error("Could not publish polling status", exc_info=True)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def set_refresh_interval(self, interval_ms: int) -> None:
        """Change the delay before the next tick.

        Raises :class:`ValueError` below :data:`MIN_REFRESH_INTERVAL_MS`.
        """
        if interval_ms < MIN_REFRESH_INTERVAL_MS:
            raise ValueError(f"refresh interval must be >= {MIN_REFRESH_INTERVAL_MS} ms, got {interval_ms}")
        self._refresh_interval_ms = interval_ms
        self._interval_changed.set()

    async def run_forever(self, stop: asyncio.Event | None = None) -> None:
        """Tick, sleep, repeat until *stop* is set.

        Ticks never overlap. Setting *stop* ends the loop after the current
        tick's publishes have completed.
        """
        stop = stop or asyncio.Event()
        while not stop.is_set():
            await self.run()
            await self._sleep(stop)

    async def _sleep(self, stop: asyncio.Event) -> None:
        # A new interval restarts the wait from now.
        while not stop.is_set():
            self._interval_changed.clear()
            waiters = {
                asyncio.ensure_future(self._interval_changed.wait()),
                asyncio.ensure_future(stop.wait()),
            }
            done, pending = await asyncio.wait(
                waiters,
                timeout=self._refresh_interval_ms / 1000,
                return_when=asyncio.FIRST_COMPLETED,
            )
            for waiter in pending:
                waiter.cancel()
            if not done:
                return
