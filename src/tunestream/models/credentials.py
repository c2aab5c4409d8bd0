"""Models describing API credential state."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from tunestream.models.base import TunestreamBaseModel


class CredentialStatus(str, Enum):
    """Quota state of a single API key."""

    ACTIVE = "active"
    EXHAUSTED = "exhausted"


class CredentialStats(TunestreamBaseModel):
    """Pool-wide key counts used for observability."""

    total: int = Field(ge=0)
    active: int = Field(ge=0)
    exhausted: int = Field(ge=0)


__all__ = ["CredentialStats", "CredentialStatus"]
