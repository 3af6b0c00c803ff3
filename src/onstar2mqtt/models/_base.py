"""Base model for account API payloads.

Every response model inherits from :class:`OnStarBaseModel` which
provides:

* frozen instances, so a parsed payload cannot drift during a cycle;
* ``extra="ignore"`` so new upstream fields never break parsing;
* a ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OnStarBaseModel(BaseModel):
    """Base for account API models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original API payload."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        # Only auto-stash raw when not explicitly provided (i.e. model_validate
        # from an API dict).
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged
