"""Bridge configuration for onstar2mqtt."""

from __future__ import annotations

import dataclasses
import os
import uuid
from typing import Any

from onstar2mqtt.exceptions import ConfigError

#: Default polling interval (30 minutes) in milliseconds.
DEFAULT_REFRESH_INTERVAL_MS = 30 * 60 * 1000


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env_key: str, value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class OnStarConfig:
    """Account-side configuration.

    Parameters
    ----------
    vin : str
        VIN of the vehicle to bridge. Matched case-insensitively against
        the account's vehicles.
    username : str
        OnStar account user name.
    password : str
        OnStar account password.
    on_star_pin : str
        Account PIN used for remote commands.
    device_id : str
        Stable device identifier presented to the account API.
    check_request_status : bool
        Whether the account client waits for command completion.
    refresh_interval_ms : int
        Delay between two polling ticks in milliseconds.
    request_polling_interval_s : int
        Seconds between command status polls (account client side).
    request_polling_timeout_s : int
        Seconds before the account client gives up on a command.
    allow_commands : bool
        Subscribe to the command topic and execute remote commands.
    client_factory : str or None
        ``"module:callable"`` import path producing the account client.
    """

    vin: str
    username: str = ""
    password: str = ""
    on_star_pin: str = ""
    device_id: str = dataclasses.field(default_factory=lambda: str(uuid.uuid4()))
    check_request_status: bool = True
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    request_polling_interval_s: int = 6
    request_polling_timeout_s: int = 90
    allow_commands: bool = True
    client_factory: str | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> OnStarConfig:
        """Create configuration from ``ONSTAR_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ONSTAR_VIN": "vin",
            "ONSTAR_USERNAME": "username",
            "ONSTAR_PASSWORD": "password",
            "ONSTAR_PIN": "on_star_pin",
            "ONSTAR_DEVICEID": "device_id",
            "ONSTAR_CLIENT_FACTORY": "client_factory",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        _ENV_INT_MAP = {
            "ONSTAR_REFRESH": "refresh_interval_ms",
            "ONSTAR_POLL_INTERVAL": "request_polling_interval_s",
            "ONSTAR_POLL_TIMEOUT": "request_polling_timeout_s",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            if field_name in overrides:
                continue
            parsed = _env_int(env_key, env.get(env_key))
            if parsed is not None:
                config_kwargs[field_name] = parsed

        if "check_request_status" not in overrides:
            config_kwargs["check_request_status"] = _env_bool(env.get("ONSTAR_SYNC"), True)
        if "allow_commands" not in overrides:
            config_kwargs["allow_commands"] = _env_bool(env.get("ONSTAR_ALLOW_COMMANDS"), True)

        config_kwargs.update(overrides)
        if not config_kwargs.get("vin"):
            raise ConfigError("ONSTAR_VIN is required")
        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class MqttConfig:
    """Bus-side configuration.

    ``polling_status_topic`` overrides the base topic under which the
    polling heartbeat is published; by default the vehicle's
    ``polling_status`` topic is used.
    """

    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    tls: bool = False
    prefix: str = "homeassistant"
    name_prefix: str = ""
    polling_status_topic: str | None = None
    keepalive: int = 60

    @property
    def url(self) -> str:
        scheme = "mqtts" if self.tls else "mqtt"
        return f"{scheme}://{self.host}:{self.port}"

    @classmethod
    def from_env(cls, **overrides: Any) -> MqttConfig:
        """Create configuration from ``MQTT_*`` environment variables."""
        env = os.environ

        _ENV_CONFIG_MAP = {
            "MQTT_HOST": "host",
            "MQTT_USERNAME": "username",
            "MQTT_PASSWORD": "password",
            "MQTT_PREFIX": "prefix",
            "MQTT_NAME_PREFIX": "name_prefix",
            "MQTT_ONSTAR_POLLING_STATUS_TOPIC": "polling_status_topic",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        for env_key, field_name in (("MQTT_PORT", "port"), ("MQTT_KEEPALIVE", "keepalive")):
            if field_name in overrides:
                continue
            parsed = _env_int(env_key, env.get(env_key))
            if parsed is not None:
                config_kwargs[field_name] = parsed

        if "tls" not in overrides:
            config_kwargs["tls"] = _env_bool(env.get("MQTT_TLS"), False)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
