"""Pydantic model describing a playable track."""

from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field

from tunestream.models.base import TunestreamBaseModel


class Video(TunestreamBaseModel):
    """Track metadata handed to the route layer.

    Instances are built whole from provider payloads by
    :class:`tunestream.services.provider.YouTubeProvider` and never modified afterwards.
    ``duration`` is a display string such as ``3:33`` or ``1:02:03``.
    """

    id: str = Field(min_length=1)
    title: str
    thumbnail: str = ""
    channel_title: str = ""
    duration: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


__all__ = ["Video"]
