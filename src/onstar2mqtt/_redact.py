"""Helpers for safe logging.

onstar2mqtt logs its configuration, account API responses and normalized
error payloads. Keys are compared case-insensitively with ``_``/``-``
removed, so ``on_star_pin``, ``onStarPin`` and ``ONSTAR-PIN`` all match.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

_MAX_DEPTH = 20
_REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "pin",
        "onstarpin",
        "token",
        "accesstoken",
        "idtoken",
        "refreshtoken",
        "authorization",
        "cookie",
        "setcookie",
    }
)


def _normalize_key(key: Any) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


def is_sensitive(key: Any) -> bool:
    return _normalize_key(key) in _SENSITIVE_KEYS


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping):
        return value
    # Config dataclasses are logged at startup.
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    return None


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for logs.

    Empty secrets are kept as-is so a missing password stays visible.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    mapping = _as_mapping(value)
    if mapping is not None:
        return {
            str(k): (_REDACTED if v else v)
            if is_sensitive(k)
            else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in mapping.items()
        }

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
