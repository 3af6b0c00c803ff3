"""Diagnostic group and element models."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import Field, ValidationError, field_validator

from onstar2mqtt.models._base import OnStarBaseModel
from onstar2mqtt.normalize import Scalar, safe_float, safe_scalar
from onstar2mqtt.rules import conversion_for, normalize_unit

_logger = logging.getLogger(__name__)

#: Message used when the source reports none.
DEFAULT_MESSAGE = "na"


class DiagnosticElement(OnStarBaseModel):
    """One reading inside a :class:`Diagnostic`.

    ``value`` is kept as reported (usually a string); values that are not
    JSON scalars degrade to ``None`` instead of failing the element.
    """

    name: str
    value: Scalar = None
    unit: str | None = None
    message: str = DEFAULT_MESSAGE
    derived: bool = False
    """Whether this is a unit-converted companion of a source element."""

    @field_validator("name", mode="before")
    @classmethod
    def _require_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("diagnostic element has no name")
        return value.strip()

    @field_validator("value", mode="before")
    @classmethod
    def _soft_value(cls, value: Any) -> Scalar:
        return safe_scalar(value)

    @field_validator("unit", mode="before")
    @classmethod
    def _normalize_unit(cls, value: Any) -> str | None:
        return normalize_unit(value)

    @field_validator("message", mode="before")
    @classmethod
    def _default_message(cls, value: Any) -> str:
        if value is None or value == "":
            return DEFAULT_MESSAGE
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return str(value)
        return DEFAULT_MESSAGE

    def converted(self) -> DiagnosticElement | None:
        """Return the secondary-unit companion, or ``None`` if not convertible.

        Derived elements are never converted again.
        """
        if self.derived:
            return None
        rule = conversion_for(self.unit)
        if rule is None:
            return None
        number = safe_float(self.value)
        return DiagnosticElement(
            name=f"{self.name} {rule.name_suffix}",
            value=rule.convert(number) if number is not None else None,
            unit=rule.to_unit,
            message=self.message,
            derived=True,
            raw=self.raw,
        )


class Diagnostic(OnStarBaseModel):
    """A named group of readings (e.g. ``"FUEL TANK INFO"``).

    ``elements`` holds the source elements in source order followed by
    their unit-converted companions.
    """

    name: str = ""
    elements: tuple[DiagnosticElement, ...] = Field(default=())

    @classmethod
    def from_response(cls, record: Any) -> Diagnostic:
        """Build a diagnostic from one ``diagnosticResponse[]`` entry.

        Elements without a usable name are skipped; everything else is
        kept, degraded where malformed.
        """
        if not isinstance(record, dict):
            _logger.warning("Skipping malformed diagnostic record: %r", record)
            return cls()
        raw_elements = record.get("diagnosticElement")
        if not isinstance(raw_elements, list):
            raw_elements = []
        return cls.build(str(record.get("name") or ""), raw_elements, raw=record)

    @classmethod
    def build(cls, name: str, records: Iterable[Any], *, raw: dict[str, Any] | None = None) -> Diagnostic:
        source: list[DiagnosticElement] = []
        for item in records:
            if isinstance(item, DiagnosticElement):
                source.append(item)
                continue
            if not isinstance(item, dict):
                _logger.warning("Skipping malformed element in %s: %r", name, item)
                continue
            try:
                source.append(DiagnosticElement.model_validate(item))
            except ValidationError:
                _logger.warning("Skipping unnamed element in %s: %r", name, item)

        derived = [conv for conv in (el.converted() for el in source) if conv is not None]
        return cls(name=name, elements=(*source, *derived), raw=raw or {})

    def has_elements(self) -> bool:
        return len(self.elements) > 0
