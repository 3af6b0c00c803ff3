"""Custom exception hierarchy and error normalization for onstar2mqtt."""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from typing import Any

import aiohttp


class OnStarMqttError(Exception):
    """Base exception for all onstar2mqtt errors."""


class ConfigError(OnStarMqttError):
    """Invalid or missing configuration."""


class VehicleNotFoundError(OnStarMqttError):
    """The configured VIN is not part of the account's vehicles."""

    def __init__(self, message: str, *, vin: str = "") -> None:
        self.vin = vin
        super().__init__(message)


class VehicleApiError(OnStarMqttError):
    """Account API request failed or was rejected.

    ``response`` and ``request`` describe the HTTP exchange when the
    account client exposed one; both are plain mappings using the
    account API's own field names (``status``, ``statusText``, ``url``...).
    """

    def __init__(
        self,
        message: str,
        *,
        response: Mapping[str, Any] | None = None,
        request: Mapping[str, Any] | None = None,
    ) -> None:
        self.response = dict(response) if response is not None else None
        self.request = dict(request) if request is not None else None
        super().__init__(message)


class FetchError(VehicleApiError):
    """Diagnostics or vehicle list could not be fetched."""


class CommandExecutionError(VehicleApiError):
    """A remote command was attempted and failed."""


class CommandNotFoundError(OnStarMqttError):
    """Inbound command name is not in the allow-list."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command not found: {command!r}")


class TransportError(OnStarMqttError):
    """Bus publish/subscribe/connect failure."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


# ---------------------------------------------------------------------------
# Normalization onto the bus
# ---------------------------------------------------------------------------

_RESPONSE_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("status", ("status", "status_code")),
    ("statusText", ("statusText", "status_text", "reason")),
    ("headers", ("headers",)),
    ("data", ("data", "body")),
)

_REQUEST_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("method", ("method",)),
    ("url", ("url", "real_url")),
    ("headers", ("headers",)),
    ("body", ("body",)),
    ("contentType", ("contentType", "content_type")),
)


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


def _lookup(source: Any, names: tuple[str, ...]) -> Any:
    for name in names:
        if isinstance(source, Mapping):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if value is not None:
            return value
    return None


def _pick(source: Any, fields: tuple[tuple[str, tuple[str, ...]], ...]) -> dict[str, Any]:
    picked: dict[str, Any] = {}
    if source is None:
        return picked
    for out_name, names in fields:
        value = _lookup(source, names)
        if value is not None:
            picked[out_name] = _jsonable(value)
    return picked


def _exchange(exc: BaseException) -> tuple[dict[str, Any], dict[str, Any]]:
    if isinstance(exc, aiohttp.ClientResponseError):
        response = {"status": exc.status, "statusText": exc.message, "headers": exc.headers}
        request = exc.request_info
        return _pick(response, _RESPONSE_FIELDS), _pick(request, _REQUEST_FIELDS)
    return (
        _pick(getattr(exc, "response", None), _RESPONSE_FIELDS),
        _pick(getattr(exc, "request", None), _REQUEST_FIELDS),
    )


def error_payload(exc: BaseException) -> dict[str, Any]:
    """Normalize *exc* into the error object published on the bus.

    Shape: ``{message, response: {status, statusText, headers, data},
    request: {method, url, headers, body, contentType}, stack}``.
    Fields the exception does not carry are omitted. When the exception
    wraps another one (``raise ... from``) and carries no HTTP exchange of
    its own, the cause's exchange is used.
    """
    payload: dict[str, Any] = {}
    message = str(exc)
    if message:
        payload["message"] = message

    response, request = _exchange(exc)
    cause = exc.__cause__
    if not response and not request and cause is not None:
        response, request = _exchange(cause)
    if response:
        payload["response"] = response
    if request:
        payload["request"] = request

    payload["stack"] = "".join(traceback.format_exception(exc))
    return payload
