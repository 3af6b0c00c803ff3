"""Vehicle identity model."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import Field, field_validator, model_validator

from onstar2mqtt.models._base import OnStarBaseModel
from onstar2mqtt.normalize import safe_int


class Vehicle(OnStarBaseModel):
    """A vehicle associated with the account.

    Fields are mapped from one entry of the account API's
    ``vehicles.vehicle[]`` list.
    """

    make: str = ""
    model: str = ""
    vin: str = ""
    year: int | str | None = None
    supported_diagnostic_names: tuple[str, ...] = Field(default=(), repr=False)
    """Diagnostic items the ``diagnostics`` command accepts for this vehicle."""
    supported_command_names: tuple[str, ...] = Field(default=(), repr=False)
    """Names of the remote commands the account advertises."""

    @model_validator(mode="before")
    @classmethod
    def _extract_commands(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "commands" not in values:
            return values
        merged = dict(values)
        commands = merged.pop("commands")
        entries = commands.get("command") if isinstance(commands, dict) else None
        if not isinstance(entries, list):
            return merged

        names: list[str] = []
        diagnostics: list[str] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            if isinstance(name, str):
                names.append(name)
            if name != "diagnostics":
                continue
            data = entry.get("commandData")
            block = data.get("supportedDiagnostics") if isinstance(data, dict) else None
            supported = block.get("supportedDiagnostic") if isinstance(block, dict) else None
            if isinstance(supported, list):
                diagnostics.extend(str(item) for item in supported)
        merged.setdefault("supported_command_names", tuple(names))
        merged.setdefault("supported_diagnostic_names", tuple(diagnostics))
        return merged

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> int | str | None:
        if value is None or value == "":
            return None
        parsed = safe_int(value)
        if parsed is not None and str(parsed) == str(value).strip():
            return parsed
        return str(value)

    @property
    def instance_key(self) -> str:
        """Key used verbatim in every topic of this vehicle."""
        return self.vin

    @property
    def display_name(self) -> str:
        return f"{self.year} {self.make} {self.model}"

    def __str__(self) -> str:
        return self.display_name

    def supported_diagnostics(self, requested: Iterable[str] = ()) -> list[str]:
        """Return the supported diagnostic items.

        With *requested*, only the requested items the vehicle supports are
        returned, in the vehicle's order.
        """
        wanted = set(requested)
        if not wanted:
            return list(self.supported_diagnostic_names)
        return [name for name in self.supported_diagnostic_names if name in wanted]

    def is_supported(self, name: str) -> bool:
        """Whether *name* is a supported diagnostic item or command."""
        return name in self.supported_diagnostic_names or name in self.supported_command_names
