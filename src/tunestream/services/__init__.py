"""Service layer for the Tunestream provider core."""

from typing import Protocol


class SupportsAclose(Protocol):
    """Protocol describing resources released asynchronously at shutdown."""

    async def aclose(self) -> None:
        """Release any acquired resources."""


__all__ = ["SupportsAclose"]
