"""Base model for server payloads.

Every takmap wire model inherits from :class:`TakBaseModel` which
provides:

* ``extra="ignore"`` so keys outside the declared schema are dropped
  instead of being adopted onto the model.
* A ``model_validator(mode="before")`` that drops JSON ``null`` values
  so the field default is used (the server serialises empty Go slices
  and pointers as ``null``).
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TakBaseModel(BaseModel):
    """Base for takmap wire models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original server payload."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        """Drop ``null`` values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        # Only auto-stash raw when not explicitly provided.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
