"""Shared base model definitions for Tunestream domain objects."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TunestreamBaseModel(BaseModel):
    """Base model configured for Tunestream-wide defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class ProviderPayloadModel(BaseModel):
    """Base model for provider responses; unknown provider fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


__all__ = ["ProviderPayloadModel", "TunestreamBaseModel"]
